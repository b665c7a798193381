# tests/conftest.py
"""
Shared IR builders for the binding engine tests.

Each helper returns the JSON-shaped dict the header parser would dump, so
tests read close to the C++ they describe.
"""

import json

import pytest

from pybind_gen import BuildContext, ClassArena, Diagnostics, TranslationUnit


def _params(params):
    out = []
    for p in params:
        if isinstance(p, str):
            out.append({'name': '', 'type': p})
        else:
            name, type_ = p
            out.append({'name': name, 'type': type_})
    return out


def function(name, ret='void', params=(), **extra):
    return {'kind': 'function', 'name': name, 'return_type': ret,
            'params': _params(params), **extra}


def method(name, ret='void', params=(), virtual=False, pure=False, override=False,
           final=False, const=False, deleted=False, static=False):
    decl = {'kind': 'member_function', 'name': name, 'return_type': ret,
            'params': _params(params), 'is_const': const, 'is_static': static,
            'virtual': {'is_virtual': virtual or pure, 'is_pure': pure,
                        'is_override': override, 'is_final': final}}
    if deleted:
        decl['body_kind'] = 'deleted'
    return decl


def ctor(params=(), deleted=False):
    decl = {'kind': 'constructor', 'name': '', 'params': _params(params)}
    if deleted:
        decl['body_kind'] = 'deleted'
    return decl


def dtor(name):
    return {'kind': 'destructor', 'name': '~' + name}


def field(name, type_):
    return {'kind': 'member_variable', 'name': name, 'type': type_}


def variable(name, type_, static=False):
    return {'kind': 'variable', 'name': name, 'type': type_,
            'storage_class': 'static' if static else 'none'}


def access(level):
    return {'kind': 'access_specifier', 'name': '', 'access': level}


def klass(name, *children, bases=(), kind='struct', final=False, id=None):
    """A class entity; `bases` holds (name, ref) pairs, plain names or dicts"""
    base_list = []
    for b in bases:
        if isinstance(b, (str, dict)):
            base_list.append(b)
        else:
            base_name, ref = b
            base_list.append({'name': base_name, 'ref': ref})
    return {'kind': 'class', 'name': name, 'id': id or f'c:{name}',
            'class_kind': kind, 'is_final': final,
            'bases': base_list, 'children': list(children)}


def class_template(name, parameters, *children, id=None):
    return {'kind': 'class_template', 'name': name, 'id': id or f'c:{name}',
            'parameters': list(parameters),
            'class': {'class_kind': 'struct', 'children': list(children)}}


def specialization(name, arguments, primary=None):
    return {'kind': 'class_template_specialization', 'name': name,
            'primary': primary or f'c:{name}', 'arguments': arguments}


def namespace(name, *children):
    return {'kind': 'namespace', 'name': name, 'children': list(children)}


def document(*entities, file='test.hpp'):
    return {'file': file, 'entities': list(entities)}


def unit(*entities, file='test.hpp') -> TranslationUnit:
    return TranslationUnit.from_dict(document(*entities, file=file))


def make_context(tu: TranslationUnit, diagnostics=None) -> BuildContext:
    return BuildContext(index=tu.index, arena=ClassArena(),
                        diagnostics=diagnostics if diagnostics is not None else Diagnostics())


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON document to a temporary file and return its path"""
    def _write(data, name='unit.json'):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding='utf-8')
        return str(path)
    return _write
