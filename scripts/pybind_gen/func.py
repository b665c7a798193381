"""
Binding node module

Per-entity registration metadata and emission for free functions,
variables, methods and constructors.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

from .codegen import CodeGen, is_rvalue_ref, macro_arg
from .names import Name

if TYPE_CHECKING:
    from .ir import (
        FunctionEntity, MemberFunctionEntity, ConstructorEntity,
        MemberVariableEntity, VariableEntity, ParamInfo,
    )
    from .context import BuildContext


class RegistrationKind(str, Enum):
    """pybind11 registration call used for a binding node"""
    DEF = 'def'
    READWRITE = 'def_readwrite'
    READONLY = 'def_readonly'
    READWRITE_STATIC = 'def_readwrite_static'
    READONLY_STATIC = 'def_readonly_static'

    @classmethod
    def for_field(cls, writable: bool, static: bool) -> 'RegistrationKind':
        if writable:
            return cls.READWRITE_STATIC if static else cls.READWRITE
        return cls.READONLY_STATIC if static else cls.READONLY


@dataclass
class Def:
    """Binding of a free function or a data member"""
    name: Name
    parent: Name
    kind: RegistrationKind = RegistrationKind.DEF
    protected: bool = False
    is_deleted: bool = False

    @classmethod
    def from_function(cls, func: 'FunctionEntity', parent: Name) -> 'Def':
        return cls(name=parent + func.name, parent=parent, is_deleted=func.is_deleted)

    @classmethod
    def from_member_variable(cls, var: 'MemberVariableEntity', parent: Name,
                             protected: bool = False) -> 'Def':
        kind = RegistrationKind.for_field(not var.type.is_deep_const(), static=False)
        return cls(name=parent + var.name, parent=parent, kind=kind, protected=protected)

    @classmethod
    def from_variable(cls, var: 'VariableEntity', parent: Name,
                      protected: bool = False) -> 'Def':
        kind = RegistrationKind.for_field(not var.type.is_deep_const(), static=var.is_static)
        return cls(name=parent + var.name, parent=parent, kind=kind, protected=protected)

    def reparent(self, parent: Name) -> 'Def':
        """Copy of this binding owned by `parent` (inheritance flattening)"""
        return replace(self, name=self.name.reparent(parent), parent=parent)

    def registration(self) -> str:
        return f'{self.parent.bind_name()}.{self.kind.value}("{self.name.py_name()}", &{self.name.cpp_name()});'

    def print(self, gen: CodeGen):
        if self.is_deleted or self.protected:
            return
        gen.line(self.registration())


def _param_types(params: list['ParamInfo'], ctx: 'BuildContext') -> list[str]:
    return [ctx.stringify(p.type) for p in params]


@dataclass
class Meth(Def):
    """Binding of a member function, or of a static member function"""
    ret_type: str = 'void'
    params: list[str] = field(default_factory=list)
    param_names: list[str] = field(default_factory=list)
    is_virtual: bool = False
    is_pure: bool = False
    is_override: bool = False
    is_final: bool = False
    is_const: bool = False
    is_overload: bool = False
    is_static: bool = False

    @classmethod
    def from_member_function(cls, func: 'MemberFunctionEntity', parent: Name,
                             ctx: 'BuildContext', protected: bool = False) -> 'Meth':
        vi = func.virtual
        return cls(
            name=parent + func.name,
            parent=parent,
            protected=protected,
            ret_type=ctx.stringify(func.return_type),
            params=_param_types(func.params, ctx),
            param_names=[p.name for p in func.params],
            is_virtual=vi.is_virtual,
            is_pure=vi.is_pure,
            is_override=vi.is_override,
            is_final=vi.is_final,
            is_const=func.is_const,
            is_deleted=func.is_deleted,
            is_static=func.is_static,
        )

    @classmethod
    def from_static_function(cls, func: 'FunctionEntity', parent: Name,
                             ctx: 'BuildContext', protected: bool = False) -> 'Meth':
        """A function declared inside a class is exposed as a static method"""
        return cls(
            name=parent + func.name,
            parent=parent,
            protected=protected,
            ret_type=ctx.stringify(func.return_type),
            params=_param_types(func.params, ctx),
            param_names=[p.name for p in func.params],
            is_deleted=func.is_deleted,
            is_static=True,
        )

    def needs_trampoline(self) -> bool:
        return (self.is_virtual or self.is_override) and not self.is_final and not self.is_deleted

    def panic(self) -> bool:
        """rvalue reference parameters cannot go through a plain member pointer"""
        return any(is_rvalue_ref(p) for p in self.params)

    def signature(self) -> tuple:
        return (self.ret_type, tuple(self.params), self.name.cpp_simple_name())

    def same_sig(self, other: 'Meth') -> bool:
        return self.signature() == other.signature()

    def exposed_name(self) -> str:
        # An overload set cannot mix static and instance methods under one name
        if self.is_overload and self.is_static:
            return self.name.py_name() + '_static'
        return self.name.py_name()

    def member_pointer(self) -> str:
        ptr = '&' + self.name.cpp_name()
        if not self.is_overload:
            return ptr
        const = ', py::const_' if self.is_const else ''
        return f'py::overload_cast<{", ".join(self.params)}>({ptr}{const})'

    def registration(self) -> str:
        call = 'def_static' if self.is_static else 'def'
        return f'{self.parent.bind_name()}.{call}("{self.exposed_name()}", {self.member_pointer()});'

    def print(self, gen: CodeGen):
        if self.is_deleted or self.protected:
            return
        with gen.commented(self.panic()):
            gen.line(self.registration())

    def arg_names(self) -> list[str]:
        return [name or f'arg_{k}' for k, name in enumerate(self.param_names)] + \
            [f'arg_{k}' for k in range(len(self.param_names), len(self.params))]

    def print_trampoline(self, gen: CodeGen):
        """Emit the override that forwards this method to Python"""
        if not self.needs_trampoline() or self.protected:
            return

        args = self.arg_names()
        decl = ', '.join(f'{t} {a}' for t, a in zip(self.params, args))
        const = ' const' if self.is_const else ''
        macro = 'PYBIND11_OVERRIDE_PURE' if self.is_pure else 'PYBIND11_OVERRIDE'
        forwarded = [macro_arg(self.ret_type), macro_arg(self.parent.cpp_name()),
                     self.name.cpp_simple_name()] + args

        with gen.block(f'{self.ret_type} {self.name.cpp_simple_name()}({decl}){const} override {{'):
            gen.line(f'{macro}({", ".join(forwarded)});')
        gen.line()


@dataclass
class Cons:
    """Binding of a constructor"""
    parent: Name
    params: list[str] = field(default_factory=list)
    protected: bool = False
    is_deleted: bool = False

    @classmethod
    def from_constructor(cls, cons: 'ConstructorEntity', parent: Name,
                         ctx: 'BuildContext', protected: bool = False) -> 'Cons':
        return cls(
            parent=parent,
            params=_param_types(cons.params, ctx),
            protected=protected,
            is_deleted=cons.is_deleted,
        )

    def panic(self) -> bool:
        return any(is_rvalue_ref(p) for p in self.params)

    def is_active(self) -> bool:
        """Whether print() emits a live registration line"""
        return not (self.is_deleted or self.protected or self.panic())

    def same_sig(self, other: 'Cons') -> bool:
        return self.params == other.params

    def reparent(self, parent: Name) -> 'Cons':
        return replace(self, parent=parent)

    def str_params(self) -> str:
        return ', '.join(self.params)

    def registration(self) -> str:
        return f'{self.parent.bind_name()}.def(py::init<{self.str_params()}>());'

    def print(self, gen: CodeGen):
        if self.is_deleted or self.protected:
            return
        with gen.commented(self.panic()):
            gen.line(self.registration())
