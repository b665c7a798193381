"""
Name/scope model

A Name is an immutable (simple name, enclosing scope) pair from which the
qualified C++ name, the registration handle identifier and the exposed
Python name are derived.
"""

from dataclasses import dataclass

from .codegen import sanitize_identifier

# Prefix of every registration handle variable in generated code
BIND_PREFIX = 'PB__'

SCOPE_SEP = '::'


@dataclass(frozen=True)
class Name:
    """Qualified C++ name

    `scope` is either empty or ends with '::'. An `auto_scope` name does not
    contribute itself to the scope of its children, which is how the
    synthetic root module keeps top-level entities unqualified.
    """
    name: str = ''
    scope: str = ''
    auto_scope: bool = False

    def cpp_simple_name(self) -> str:
        return self.name

    def cpp_name(self) -> str:
        """Fully qualified name, usable after '&'"""
        return self.scope + self.name

    def self_scope(self) -> str:
        return self.scope

    def as_scope(self) -> str:
        """Scope string handed down to children"""
        if self.auto_scope:
            return self.self_scope()
        return self.scope + self.name + SCOPE_SEP

    def bind_name(self) -> str:
        """Registration handle identifier, e.g. PB__ns__Foo"""
        return BIND_PREFIX + sanitize_identifier(self.cpp_name())

    def py_name(self) -> str:
        """Name exposed to Python"""
        return sanitize_identifier(self.name)

    def reparent(self, parent: 'Name') -> 'Name':
        """Same simple name, re-rooted under `parent`"""
        return parent + self.name

    def __add__(self, child: str) -> 'Name':
        return Name(child, self.as_scope(), False)

    def __str__(self) -> str:
        return self.cpp_name()


def root_name(handle: str = 'm') -> Name:
    """Name of a root module: its children stay unqualified"""
    return Name(handle, '', True)
