"""
Module binding module

Namespaces become submodules, a parsed file becomes a root module. Modules
aggregate classes, free functions and nested submodules, and are merged
across files before emission.
"""

from typing import Iterable, Optional, TYPE_CHECKING

from .codegen import CodeGen
from .context import BuildContext
from .diagnostics import Diagnostics, DiagnosticKind
from .func import Def
from .ir import (
    ClassEntity, FunctionEntity, MemberFunctionEntity, NamespaceEntity,
    SpecializationEntity,
)
from .names import Name, root_name
from .struct import ClassArena, ClassBinding, ClassCollection, specialize

if TYPE_CHECKING:
    from .ir import Entity, TranslationUnit

DEFAULT_LIBRARY_INCLUDES = ['pybind11/pybind11.h']


class Module:
    """Classes, free functions and submodules of one namespace"""

    def __init__(self, name: Name, arena: ClassArena):
        self.name = name
        self.mods: dict[str, 'Submodule'] = {}
        self.defs: list[Def] = []
        self.classes = ClassCollection(arena)

    @property
    def arena(self) -> ClassArena:
        return self.classes.arena

    def add_submodule(self, mod: 'Submodule'):
        """Add a submodule; a namespace seen again is merged into the first one"""
        key = mod.name.cpp_simple_name()
        target = self.mods.get(key)
        if target is None:
            if mod.arena is self.arena:
                self.mods[key] = mod
                return
            target = self.mods[key] = Submodule(mod.name, mod.parent, self.arena)
        target.merge(mod)

    def add_def(self, d: Def):
        if d not in self.defs:
            self.defs.append(d)

    def add_class(self, binding: ClassBinding):
        self.classes.add(binding)

    def process(self, entity: 'Entity', ctx: BuildContext):
        """Dispatch one entity found directly in this namespace"""
        location = self.name.cpp_name()
        if entity.name and ctx.is_ignored((self.name + entity.name).cpp_name()):
            ctx.warn(DiagnosticKind.IGNORED, location, f'skipped: {entity.name}')
            return

        if isinstance(entity, FunctionEntity) and not isinstance(entity, MemberFunctionEntity):
            self.add_def(Def.from_function(entity, self.name))
        elif isinstance(entity, NamespaceEntity):
            if not entity.name:
                ctx.warn(DiagnosticKind.UNSUPPORTED, location,
                         'anonymous namespace has internal linkage, skipped')
                return
            self.add_submodule(Submodule.build(entity, self.name, ctx))
        elif isinstance(entity, ClassEntity):
            self.add_class(ClassBinding.build(entity, self.name, ctx))
        elif isinstance(entity, SpecializationEntity):
            binding = specialize(entity, self.name, ctx)
            if binding is not None:
                self.add_class(binding)
        else:
            ctx.ignored(entity, location)

    def merge(self, other: 'Module'):
        for mod in other.mods.values():
            self.add_submodule(mod)
        for d in other.defs:
            self.add_def(d)
        self.classes.merge(other.classes)

    def has_trampolines(self) -> bool:
        return (any(c.has_trampolines() for c in self.classes)
                or any(m.has_trampolines() for m in self.mods.values()))

    def print_prelude_content(self, gen: CodeGen):
        for mod in self.mods.values():
            mod.print_prelude(gen)
        for binding in self.classes:
            binding.print_trampoline(gen)

    def print_content(self, gen: CodeGen, diagnostics: Diagnostics):
        for mod in self.mods.values():
            mod.print(gen, diagnostics)
        for binding in self.classes.order(diagnostics):
            binding.print(gen, diagnostics)
        for d in self.defs:
            d.print(gen)


class Submodule(Module):
    """A namespace, registered with def_submodule"""

    def __init__(self, name: Name, parent: Name, arena: ClassArena):
        super().__init__(name, arena)
        self.parent = parent

    @classmethod
    def build(cls, ns: NamespaceEntity, parent: Name, ctx: BuildContext) -> 'Submodule':
        mod = cls(parent + ns.name, parent, ctx.arena)
        for entity in ns.children:
            mod.process(entity, ctx)
        return mod

    def print_prelude(self, gen: CodeGen):
        if not self.has_trampolines():
            return
        simple = self.name.cpp_simple_name()
        with gen.block(f'namespace {simple} {{', f'}}  // namespace {simple}'):
            self.print_prelude_content(gen)
        gen.line()

    def print(self, gen: CodeGen, diagnostics: Diagnostics):
        decl = (f'py::module_ {self.name.bind_name()} = '
                f'{self.parent.bind_name()}.def_submodule("{self.name.py_name()}");')
        with gen.block(decl + ' {'):
            gen.line(f'using namespace {self.name.cpp_name()};')
            self.print_content(gen, diagnostics)
        gen.line()


class RootModule(Module):
    """Top-level module of one or more parsed files"""

    def __init__(self, lib_name: str = 'example', handle: str = 'm',
                 arena: Optional[ClassArena] = None,
                 library_includes: Optional[list[str]] = None):
        super().__init__(root_name(handle), arena if arena is not None else ClassArena())
        self.lib_name = lib_name
        self.includes: list[str] = []
        self.library_includes = list(library_includes or DEFAULT_LIBRARY_INCLUDES)

    @classmethod
    def from_unit(cls, unit: 'TranslationUnit', lib_name: str = 'example',
                  handle: str = 'm', diagnostics: Optional[Diagnostics] = None,
                  ignores: Iterable[str] = (),
                  library_includes: Optional[list[str]] = None) -> 'RootModule':
        """Build the root module of one translation unit against its own index"""
        root = cls(lib_name, handle, library_includes=library_includes)
        ctx = BuildContext(
            index=unit.index,
            arena=root.arena,
            diagnostics=diagnostics if diagnostics is not None else Diagnostics(),
            ignores=frozenset(ignores),
        )
        root.includes.append(unit.path)
        for entity in unit.entities:
            root.process(entity, ctx)
        return root

    def merge(self, other: 'Module'):
        if isinstance(other, RootModule):
            for path in other.includes:
                if path not in self.includes:
                    self.includes.append(path)
        super().merge(other)

    def print_prelude(self, gen: CodeGen):
        for path in self.library_includes:
            gen.line(f'#include <{path}>')
        gen.line('namespace py = pybind11;')
        gen.line()
        for path in self.includes:
            gen.line(f'#include "{path}"')
        gen.line()
        self.print_prelude_content(gen)

    def print_module(self, gen: CodeGen, diagnostics: Diagnostics):
        with gen.block(f'PYBIND11_MODULE({self.lib_name}, {self.name.bind_name()}) {{'):
            self.print_content(gen, diagnostics)

    def print_file(self, gen: CodeGen, diagnostics: Optional[Diagnostics] = None):
        if diagnostics is None:
            diagnostics = Diagnostics()
        self.print_prelude(gen)
        self.print_module(gen, diagnostics)
