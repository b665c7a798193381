"""
Class binding module

Builds the binding of one C++ class: flattens base-class members into it,
detects overload sets and trampoline needs, and emits the py::class_
registration block. Class bindings live in a ClassArena and are grouped by
simple name in ClassCollections.
"""

from collections import Counter
from dataclasses import replace
from typing import Iterator, Optional, TYPE_CHECKING

from .codegen import (
    CodeGen, unqualified_name, strip_template_args, template_args_text,
)
from .diagnostics import Diagnostics, DiagnosticKind
from .func import Def, Meth, Cons
from .ir import (
    Access, AccessSpecifierEntity, ClassEntity, ClassTemplateEntity,
    ConstructorEntity, DestructorEntity, FunctionEntity, MemberFunctionEntity,
    MemberVariableEntity, SpecializationEntity, VariableEntity,
)
from .names import Name
from .types import SubstitutionContext

if TYPE_CHECKING:
    from .context import BuildContext
    from .ir import BaseSpec, Entity


class ClassArena:
    """Owns every ClassBinding of one module tree, indexed by stable id"""

    def __init__(self):
        self._classes: list['ClassBinding'] = []

    def add(self, binding: 'ClassBinding') -> int:
        binding.id = len(self._classes)
        self._classes.append(binding)
        return binding.id

    def owns(self, binding: 'ClassBinding') -> bool:
        return 0 <= binding.id < len(self._classes) and self._classes[binding.id] is binding

    def adopt(self, binding: 'ClassBinding') -> 'ClassBinding':
        """Copy a binding from another arena (with its nested classes) into this one"""
        copy = ClassBinding(binding.name, binding.parent, self, bases=binding.bases,
                            is_final=binding.is_final, namespace=binding.namespace)
        copy.mems = [replace(m) for m in binding.mems]
        copy.meths = [replace(m) for m in binding.meths]
        copy.conss = [replace(c) for c in binding.conss]
        self.add(copy)
        for nested in binding.nested:
            copy.nested.add(nested)
        return copy

    def __getitem__(self, class_id: int) -> 'ClassBinding':
        return self._classes[class_id]

    def __len__(self) -> int:
        return len(self._classes)


class ClassCollection:
    """Classes keyed by simple name; adding an existing name merges"""

    def __init__(self, arena: ClassArena):
        self.arena = arena
        self._ids: dict[str, int] = {}

    def add(self, binding: 'ClassBinding') -> 'ClassBinding':
        key = binding.name.cpp_simple_name()
        if key in self._ids:
            existing = self.arena[self._ids[key]]
            existing.merge(binding)
            return existing
        if not self.arena.owns(binding):
            binding = self.arena.adopt(binding)
        self._ids[key] = binding.id
        return binding

    def merge(self, other: 'ClassCollection'):
        for binding in other:
            self.add(binding)

    def get(self, name: str) -> Optional['ClassBinding']:
        if name not in self._ids:
            return None
        return self.arena[self._ids[name]]

    def __getitem__(self, name: str) -> 'ClassBinding':
        return self.arena[self._ids[name]]

    def __contains__(self, name: str) -> bool:
        return name in self._ids

    def __iter__(self) -> Iterator['ClassBinding']:
        return (self.arena[i] for i in self._ids.values())

    def __len__(self) -> int:
        return len(self._ids)

    def names(self) -> list[str]:
        return list(self._ids)

    def order(self, diagnostics: Optional[Diagnostics] = None) -> list['ClassBinding']:
        """Order classes so that every base comes before its derived classes

        A class waits while one of its bases names another class of this
        collection that has not been emitted yet. When a full scan makes no
        progress (a cycle), the rest is emitted as is with one warning each.
        """
        if diagnostics is None:
            diagnostics = Diagnostics()

        remaining = list(self)
        waiting = {c.name.cpp_simple_name() for c in remaining}
        ordered = []

        def blocking(binding: 'ClassBinding') -> list[str]:
            own = binding.name.cpp_simple_name()
            return [b for b in binding.bases
                    if unqualified_name(b) != own and unqualified_name(b) in waiting]

        while remaining:
            progress = False
            still_waiting = []
            for binding in remaining:
                if blocking(binding):
                    still_waiting.append(binding)
                    continue
                ordered.append(binding)
                waiting.discard(binding.name.cpp_simple_name())
                progress = True
            remaining = still_waiting

            if not progress:
                for binding in remaining:
                    diagnostics.report(
                        DiagnosticKind.UNRESOLVED, binding.name.cpp_name(),
                        f'cannot order after base class {", ".join(blocking(binding))}')
                ordered.extend(remaining)
                break

        return ordered


class ClassBinding:
    """Binding of one C++ class"""

    def __init__(self, name: Name, parent: Name, arena: ClassArena,
                 bases: Optional[list[str]] = None, is_final: bool = False,
                 namespace: Optional[str] = None):
        self.id = -1
        self.name = name
        self.parent = parent
        # scope of the innermost enclosing namespace, where the trampoline lives
        self.namespace = parent.as_scope() if namespace is None else namespace
        self.bases: list[str] = list(bases or [])
        self.is_final = is_final
        self.mems: list[Def] = []
        self.meths: list[Meth] = []
        self.conss: list[Cons] = []
        self.nested = ClassCollection(arena)

    def __repr__(self) -> str:
        return f'ClassBinding({self.name.cpp_name()!r})'

    @classmethod
    def build(cls, entity: ClassEntity, parent: Name, ctx: 'BuildContext',
              name: Optional[Name] = None) -> 'ClassBinding':
        """Build the binding of a class entity (and of its nested classes)"""
        binding = cls(name or parent + entity.name, parent, ctx.arena, is_final=entity.is_final)
        ctx.arena.add(binding)

        for base in entity.bases:
            binding.inherit(base, ctx)

        access = entity.default_access
        for child in entity.children:
            if isinstance(child, AccessSpecifierEntity):
                access = child.access
            elif access != Access.PRIVATE:
                binding.process(child, ctx, protected=access == Access.PROTECTED)

        binding.resolve_overloads()

        if binding.panic():
            names = ', '.join(m.name.cpp_simple_name() for m in binding.meths
                              if m.protected and m.is_pure)
            ctx.warn(DiagnosticKind.SUPPRESSED, binding.name.cpp_name(),
                     f'protected pure virtual method ({names}), registration commented out')
        return binding

    def inherit(self, base: 'BaseSpec', ctx: 'BuildContext'):
        """Copy the members and methods of a base class into this class

        Only members and methods are copied, nested classes of the base are not.
        """
        base_binding = resolve_base(base, self.name, ctx)
        if base_binding is None:
            return
        self.bases.append(ctx.substitutions.substitute_text(base.name))
        for mem in base_binding.mems:
            self.add_member(mem.reparent(self.name))
        for meth in base_binding.meths:
            self.add_method(meth.reparent(self.name))

    def process(self, entity: 'Entity', ctx: 'BuildContext', protected: bool = False):
        """Dispatch one public or protected child entity"""
        location = self.name.cpp_name()
        if entity.name and ctx.is_ignored((self.name + entity.name).cpp_name()):
            ctx.warn(DiagnosticKind.IGNORED, location, f'skipped: {entity.name}')
            return

        if isinstance(entity, MemberFunctionEntity):
            self._add_checked(Meth.from_member_function(entity, self.name, ctx, protected), ctx)
        elif isinstance(entity, FunctionEntity):
            self._add_checked(Meth.from_static_function(entity, self.name, ctx, protected), ctx)
        elif isinstance(entity, ConstructorEntity):
            cons = Cons.from_constructor(entity, self.name, ctx, protected)
            if cons.panic() and not (cons.is_deleted or cons.protected):
                ctx.warn(DiagnosticKind.UNSUPPORTED, location,
                         f'constructor ({cons.str_params()}) takes an rvalue reference, commented out')
            self.add_constructor(cons)
        elif isinstance(entity, MemberVariableEntity):
            self.add_member(Def.from_member_variable(entity, self.name, protected))
        elif isinstance(entity, VariableEntity):
            self.add_member(Def.from_variable(entity, self.name, protected))
        elif isinstance(entity, (ClassEntity, SpecializationEntity)):
            # protected nested classes cannot be named from the module
            if protected:
                return
            if isinstance(entity, ClassEntity):
                nested = ClassBinding.build(entity, self.name, ctx)
            else:
                nested = specialize(entity, self.name, ctx)
            if nested is not None:
                nested.set_namespace(self.namespace)
                self.add_class(nested)
        elif isinstance(entity, DestructorEntity):
            pass
        else:
            ctx.ignored(entity, location)

    def _add_checked(self, meth: Meth, ctx: 'BuildContext'):
        if meth.panic() and not (meth.is_deleted or meth.protected):
            ctx.warn(DiagnosticKind.UNSUPPORTED, meth.name.cpp_name(),
                     'rvalue reference parameter, registration commented out')
        self.add_method(meth)

    def add_member(self, mem: Def):
        self.mems.append(mem)

    def add_method(self, meth: Meth):
        """Add a method; an existing method with the same signature is replaced"""
        self.meths = [m for m in self.meths if not m.same_sig(meth)]
        self.meths.append(meth)

    def add_constructor(self, cons: Cons):
        self.conss.append(cons)

    def add_class(self, binding: 'ClassBinding'):
        self.nested.add(binding)

    def set_namespace(self, scope: str):
        self.namespace = scope
        for nested in self.nested:
            nested.set_namespace(scope)

    def resolve_overloads(self):
        """Mark every method whose simple name is shared by another method"""
        counts = Counter(m.name.cpp_simple_name() for m in self.meths)
        for meth in self.meths:
            meth.is_overload = counts[meth.name.cpp_simple_name()] > 1

    def merge(self, other: 'ClassBinding'):
        """Union of two bindings of the same class"""
        if len(other.bases) > len(self.bases):
            self.bases = list(other.bases)
        for mem in other.mems:
            if mem not in self.mems:
                self.add_member(replace(mem))
        for meth in other.meths:
            self.add_method(replace(meth))
        for cons in other.conss:
            if not any(c.same_sig(cons) for c in self.conss):
                self.add_constructor(replace(cons))
        self.nested.merge(other.nested)
        self.resolve_overloads()

    def panic(self) -> bool:
        """A protected pure virtual method makes the class impossible to expose"""
        return any(m.protected and m.is_pure for m in self.meths)

    def needs_trampoline(self) -> bool:
        return not self.is_final and any(m.needs_trampoline() for m in self.meths)

    def trampoline_name(self) -> str:
        return 'Tr' + self.name.bind_name()

    def qualified_trampoline_name(self) -> str:
        return self.namespace + self.trampoline_name()

    def has_trampolines(self) -> bool:
        """Whether print_trampoline() emits anything for this class or its nested classes"""
        if self.needs_trampoline() and not self.panic():
            return True
        return any(n.has_trampolines() for n in self.nested)

    def print_trampoline(self, gen: CodeGen):
        if self.needs_trampoline() and not self.panic():
            qualified = self.name.cpp_name()
            simple = strip_template_args(self.name.cpp_simple_name())
            with gen.block(f'struct {self.trampoline_name()} : {qualified} {{', '};'):
                gen.line(f'using {qualified}::{simple};')
                gen.line()
                for meth in self.meths:
                    meth.print_trampoline(gen)
            gen.line()
        for nested in self.nested:
            nested.print_trampoline(gen)

    def print_content(self, gen: CodeGen, diagnostics: Diagnostics):
        if not any(c.is_active() for c in self.conss):
            Cons(self.name).print(gen)
        for cons in self.conss:
            cons.print(gen)
        for mem in self.mems:
            mem.print(gen)
        for meth in self.meths:
            meth.print(gen)
        for nested in self.nested.order(diagnostics):
            nested.print(gen, diagnostics)

    def print(self, gen: CodeGen, diagnostics: Diagnostics):
        args = [self.name.cpp_name()] + self.bases
        if self.needs_trampoline():
            args.append(self.qualified_trampoline_name())
        decl = (f'py::class_<{", ".join(args)}> {self.name.bind_name()}'
                f'({self.parent.bind_name()}, "{self.name.py_name()}");')
        with gen.commented(self.panic()):
            with gen.block(decl + ' {'):
                self.print_content(gen, diagnostics)
        gen.line()


def instantiate(primary: ClassTemplateEntity, arguments: str, parent: Name,
                ctx: 'BuildContext') -> Optional[ClassBinding]:
    """Build `Primary<arguments>` from the primary template's class body"""
    if primary.body is None:
        ctx.warn(DiagnosticKind.UNRESOLVED, parent.cpp_name(),
                 f'class template {primary.name} has no definition')
        return None
    subs = SubstitutionContext.for_specialization(primary.parameters, arguments, ctx.substitutions)
    args_text = ctx.substitutions.substitute_text(arguments)
    name = parent + f'{primary.name}<{args_text}>'
    return ClassBinding.build(primary.body, parent, ctx.with_substitutions(subs), name=name)


def specialize(spec: SpecializationEntity, parent: Name,
               ctx: 'BuildContext') -> Optional[ClassBinding]:
    """Build the binding of a class template specialization"""
    primary = ctx.lookup(spec.primary)
    if not isinstance(primary, ClassTemplateEntity):
        ctx.warn(DiagnosticKind.UNRESOLVED, (parent + spec.name).cpp_name(),
                 f'template primary {spec.primary or spec.name!r} not found')
        return None
    return instantiate(primary, spec.arguments, parent, ctx)


def resolve_base(base: 'BaseSpec', derived: Name,
                 ctx: 'BuildContext') -> Optional[ClassBinding]:
    """Build (or reuse) the binding of a base class, anchored at an empty scope

    Returns None, after reporting why, when the base cannot be used.
    """
    location = derived.cpp_name()
    entity = ctx.lookup(base.ref)
    if entity is None:
        ctx.warn(DiagnosticKind.UNRESOLVED, location, f'base class {base.name} not found')
        return None

    arguments = ''
    if isinstance(entity, ClassTemplateEntity):
        arguments = base.arguments if base.arguments is not None else template_args_text(base.name)
    arguments = ctx.substitutions.substitute_text(arguments)

    key = (entity.id, arguments)
    if key in ctx.base_cache:
        return ctx.base_cache[key]
    if key in ctx.in_progress:
        ctx.warn(DiagnosticKind.UNRESOLVED, location,
                 f'inheritance cycle through base class {base.name}')
        return None

    anchor = Name(auto_scope=True)
    scratch = ctx.with_arena(ClassArena()).with_substitutions(SubstitutionContext())
    ctx.in_progress.add(key)
    try:
        if isinstance(entity, ClassEntity):
            binding = ClassBinding.build(entity, anchor, scratch)
        elif isinstance(entity, SpecializationEntity):
            binding = specialize(entity, anchor, scratch)
        elif isinstance(entity, ClassTemplateEntity):
            binding = instantiate(entity, arguments, anchor, scratch)
        else:
            ctx.warn(DiagnosticKind.UNRESOLVED, location,
                     f'base class {base.name} refers to a {entity.kind_name}')
            binding = None
    finally:
        ctx.in_progress.discard(key)

    if binding is not None:
        ctx.base_cache[key] = binding
    return binding
