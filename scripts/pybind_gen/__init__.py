"""
pybind_gen - pybind11 binding generation from C++ entity trees

Turns the entity tree of a parsed C++ header (namespaces, classes,
functions, variables, constructors, template specializations) into
pybind11 registration code: submodules per namespace, py::class_ blocks in
base-before-derived order, overload disambiguation and trampoline structs
for classes with virtual methods.
"""

from .ir import (
    TranslationUnit, EntityIndex, IRError, EntityKind, Access, BodyKind,
    TypeInfo, ParamInfo, VirtualInfo, BaseSpec, Entity,
    NamespaceEntity, ClassEntity, ClassTemplateEntity, SpecializationEntity,
    FunctionEntity, MemberFunctionEntity, ConstructorEntity, DestructorEntity,
    MemberVariableEntity, VariableEntity, AccessSpecifierEntity, UnknownEntity,
)
from .names import Name, root_name
from .codegen import CodeGen
from .diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from .types import SubstitutionContext, TypeStringifier
from .context import BuildContext
from .func import RegistrationKind, Def, Meth, Cons
from .struct import ClassArena, ClassBinding, ClassCollection
from .module import Module, Submodule, RootModule
from .generator import Generator, GeneratorConfig, generate_bindings

__all__ = [
    'TranslationUnit', 'EntityIndex', 'IRError', 'EntityKind', 'Access', 'BodyKind',
    'TypeInfo', 'ParamInfo', 'VirtualInfo', 'BaseSpec', 'Entity',
    'NamespaceEntity', 'ClassEntity', 'ClassTemplateEntity', 'SpecializationEntity',
    'FunctionEntity', 'MemberFunctionEntity', 'ConstructorEntity', 'DestructorEntity',
    'MemberVariableEntity', 'VariableEntity', 'AccessSpecifierEntity', 'UnknownEntity',
    'Name', 'root_name',
    'CodeGen',
    'Diagnostic', 'DiagnosticKind', 'Diagnostics',
    'SubstitutionContext', 'TypeStringifier',
    'BuildContext',
    'RegistrationKind', 'Def', 'Meth', 'Cons',
    'ClassArena', 'ClassBinding', 'ClassCollection',
    'Module', 'Submodule', 'RootModule',
    'Generator', 'GeneratorConfig', 'generate_bindings',
]
