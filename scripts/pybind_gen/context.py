"""
Build context

State shared while one translation unit is turned into bindings: the entity
index, the class arena, the diagnostics sink, the ignore list and the active
template substitutions.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, TYPE_CHECKING

from .diagnostics import Diagnostics, DiagnosticKind
from .types import SubstitutionContext, TypeStringifier

if TYPE_CHECKING:
    from .ir import EntityIndex, Entity, TypeInfo
    from .struct import ClassArena, ClassBinding


@dataclass
class BuildContext:
    index: 'EntityIndex'
    arena: 'ClassArena'
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    ignores: frozenset[str] = frozenset()
    substitutions: SubstitutionContext = field(default_factory=SubstitutionContext)
    # Shared between derived contexts: base bindings built so far and the
    # classes currently being flattened
    base_cache: dict[tuple[str, str], 'ClassBinding'] = field(default_factory=dict)
    in_progress: set[tuple[str, str]] = field(default_factory=set)

    def with_substitutions(self, substitutions: SubstitutionContext) -> 'BuildContext':
        """Same context with another set of template substitutions"""
        return replace(self, substitutions=substitutions)

    def with_arena(self, arena: 'ClassArena') -> 'BuildContext':
        return replace(self, arena=arena)

    def stringify(self, type_info: 'TypeInfo') -> str:
        return TypeStringifier(self.substitutions).render(type_info)

    def lookup(self, entity_id: str) -> Optional['Entity']:
        return self.index.lookup(entity_id)

    def is_ignored(self, qualified_name: str) -> bool:
        return qualified_name in self.ignores

    def warn(self, kind: DiagnosticKind, location: str, message: str):
        self.diagnostics.report(kind, location, message)

    def ignored(self, entity: 'Entity', location: str = ''):
        """Report an entity the engine has no binding for"""
        self.warn(DiagnosticKind.UNRECOGNIZED, location,
                  f'ignored: {entity.name} ({entity.kind_name})')
