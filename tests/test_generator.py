# tests/test_generator.py
"""
Tests for the multi-file generator and its configuration.
"""

import json

import pytest

from pybind_gen import DiagnosticKind, Generator, GeneratorConfig, generate_bindings
from tests.conftest import unit, klass, method, function, namespace


class TestConfig:

    def test_defaults(self):
        config = GeneratorConfig()
        assert config.lib_name == 'example'
        assert config.root_handle == 'm'
        assert config.library_includes == ['pybind11/pybind11.h']

    def test_from_dict(self):
        config = GeneratorConfig.from_dict({'lib_name': 'geom', 'indent': '    ',
                                            'ignores': ['ns::f']})
        assert config.lib_name == 'geom'
        assert config.indent == '    '
        assert config.ignores == {'ns::f'}

    def test_unknown_key(self):
        with pytest.raises(ValueError, match='namespace_alias'):
            GeneratorConfig.from_dict({'namespace_alias': 'pb'})

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            GeneratorConfig.from_dict(['lib_name'])

    def test_load(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'lib_name': 'shapes'}), encoding='utf-8')
        assert GeneratorConfig.load(str(path)).lib_name == 'shapes'


class TestGenerator:

    def test_merges_files(self):
        gen = Generator()
        gen.add_file(unit(namespace('ns', klass('Foo', method('f', params=['int']))), file='a.hpp'))
        gen.add_file(unit(namespace('ns', klass('Foo', method('f', params=['double'])),
                                    function('h')), file='b.hpp'))
        text = gen.generate()
        assert '#include "a.hpp"\n#include "b.hpp"\n' in text
        assert text.count('py::class_<ns::Foo>') == 1
        assert 'PB__ns__Foo.def("f", py::overload_cast<int>(&ns::Foo::f));' in text
        assert 'PB__ns__Foo.def("f", py::overload_cast<double>(&ns::Foo::f));' in text
        assert 'PB__ns.def("h", &ns::h);' in text

    def test_build_does_not_merge(self):
        gen = Generator()
        root = gen.build(unit(function('f'), file='a.hpp'))
        assert root.includes == ['a.hpp']
        assert gen.root.includes == []

    def test_ignore(self):
        gen = Generator()
        gen.ignore('skip', 'ns::also')
        gen.add_file(unit(function('skip'), function('keep'), namespace('ns', function('also'))))
        text = gen.generate()
        assert 'keep' in text
        assert 'skip' not in text
        assert 'also' not in text
        assert len(gen.diagnostics.of_kind(DiagnosticKind.IGNORED)) == 2

    def test_config_is_applied(self):
        config = GeneratorConfig(lib_name='geom', root_handle='mod', indent='\t')
        gen = Generator(config)
        gen.add_file(unit(function('f')))
        text = gen.generate()
        assert 'PYBIND11_MODULE(geom, PB__mod) {\n\tPB__mod.def("f", &f);\n}\n' in text

    def test_generate_is_repeatable(self):
        gen = Generator()
        gen.add_file(unit(klass('X', bases=[('Y', 'c:Y')]), klass('Y', bases=[('X', 'c:X')])))
        first = gen.generate()
        count = len(gen.diagnostics)
        assert gen.generate() == first
        assert len(gen.diagnostics) == count

    def test_cycle_is_emitted(self):
        gen = Generator()
        gen.add_file(unit(klass('X', bases=[('Y', 'c:Y')]), klass('Y', bases=[('X', 'c:X')])))
        text = gen.generate()
        assert 'PB__X(PB__m, "X")' in text
        assert 'PB__Y(PB__m, "Y")' in text
        ordering = [d for d in gen.diagnostics.of_kind(DiagnosticKind.UNRESOLVED)
                    if 'cannot order' in d.message]
        assert len(ordering) == 2

    def test_diagnostics_are_collected(self):
        gen = Generator()
        gen.add_file(unit({'kind': 'enum', 'name': 'Color'}))
        [d] = list(gen.diagnostics)
        assert d.kind == DiagnosticKind.UNRECOGNIZED
        assert str(d) == 'unrecognized: m: ignored: Color (enum)'

    def test_reset(self):
        gen = Generator()
        gen.add_file(unit({'kind': 'enum', 'name': 'Color'}, file='a.hpp'))
        gen.reset()
        assert not gen.diagnostics
        assert gen.root.includes == []

    def test_write(self, tmp_path):
        gen = Generator()
        gen.add_file(unit(function('f')))
        out = tmp_path / 'bind.cpp'
        gen.write(str(out))
        assert out.read_text(encoding='utf-8') == gen.generate()


class TestGenerateBindings:

    def test_single_call(self):
        text, diags = generate_bindings([unit(function('f'), file='a.hpp'),
                                         unit(function('g'), file='b.hpp')])
        assert 'PB__m.def("f", &f);' in text
        assert 'PB__m.def("g", &g);' in text
        assert not diags

    def test_with_config(self):
        text, _ = generate_bindings([unit()], GeneratorConfig(lib_name='empty'))
        assert 'PYBIND11_MODULE(empty, PB__m) {' in text
