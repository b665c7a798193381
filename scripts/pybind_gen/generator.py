"""
Main generator module

Builds one root module per parsed file, merges them, and emits the
complete pybind11 registration source.
"""

import json
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .codegen import CodeGen
from .diagnostics import Diagnostics
from .ir import TranslationUnit
from .module import RootModule, DEFAULT_LIBRARY_INCLUDES


@dataclass
class GeneratorConfig:
    """Configuration for a generator run"""
    lib_name: str = 'example'
    root_handle: str = 'm'
    indent: str = '  '
    library_includes: list[str] = field(default_factory=lambda: list(DEFAULT_LIBRARY_INCLUDES))
    ignores: set[str] = field(default_factory=set)

    @classmethod
    def load(cls, json_path: str) -> 'GeneratorConfig':
        """Load configuration from a JSON file"""
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'GeneratorConfig':
        if not isinstance(data, dict):
            raise ValueError('configuration must be an object')
        unknown = set(data) - {'lib_name', 'root_handle', 'indent', 'library_includes', 'ignores'}
        if unknown:
            raise ValueError(f'unknown configuration keys: {", ".join(sorted(unknown))}')
        config = cls()
        config.lib_name = data.get('lib_name', config.lib_name)
        config.root_handle = data.get('root_handle', config.root_handle)
        config.indent = data.get('indent', config.indent)
        config.library_includes = list(data.get('library_includes', config.library_includes))
        config.ignores = set(data.get('ignores', []))
        return config


class Generator:
    """Main binding generator"""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config if config is not None else GeneratorConfig()
        self.diagnostics = Diagnostics()
        self._root = self._new_root()

    def _new_root(self) -> RootModule:
        return RootModule(self.config.lib_name, self.config.root_handle,
                          library_includes=self.config.library_includes)

    @property
    def root(self) -> RootModule:
        """The aggregate root module of every file added so far"""
        return self._root

    def ignore(self, *names: str):
        """Add qualified symbol names to skip"""
        self.config.ignores.update(names)

    def build(self, unit: TranslationUnit) -> RootModule:
        """Build the root module of a single file (not merged)"""
        return RootModule.from_unit(
            unit,
            lib_name=self.config.lib_name,
            handle=self.config.root_handle,
            diagnostics=self.diagnostics,
            ignores=self.config.ignores,
            library_includes=self.config.library_includes,
        )

    def add_file(self, unit: TranslationUnit) -> RootModule:
        """Build a file and merge it into the aggregate"""
        root = self.build(unit)
        self._root.merge(root)
        return root

    def add_files(self, units: Iterable[TranslationUnit]):
        for unit in units:
            self.add_file(unit)

    def generate(self) -> str:
        """Generate the registration source of everything added so far"""
        gen = CodeGen(self.config.indent)
        self._root.print_file(gen, self.diagnostics)
        return gen.output()

    def write(self, output_path: str):
        with open(output_path, 'w', newline='\n', encoding='utf-8') as f:
            f.write(self.generate())

    def reset(self):
        """Drop every added file and all diagnostics"""
        self.diagnostics.clear()
        self._root = self._new_root()


def generate_bindings(units: Iterable[TranslationUnit],
                      config: Optional[GeneratorConfig] = None) -> tuple[str, Diagnostics]:
    """Generate bindings for several files in one call"""
    gen = Generator(config)
    gen.add_files(units)
    return gen.generate(), gen.diagnostics
