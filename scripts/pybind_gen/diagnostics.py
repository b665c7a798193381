"""
Diagnostics module

The engine never prints. Anything it skips, comments out or cannot resolve
is recorded here and handed back to the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class DiagnosticKind(str, Enum):
    UNSUPPORTED = 'unsupported'    # construct that cannot be bound; line or class commented out
    UNRESOLVED = 'unresolved'      # base class / template primary not in the index
    UNRECOGNIZED = 'unrecognized'  # entity kind without a binding
    SUPPRESSED = 'suppressed'      # class registration commented out as a whole
    IGNORED = 'ignored'            # skipped on request (ignore list)


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    location: str
    message: str

    def __str__(self) -> str:
        if self.location:
            return f'{self.kind.value}: {self.location}: {self.message}'
        return f'{self.kind.value}: {self.message}'


class Diagnostics:
    """Ordered collection of diagnostics for one build"""

    def __init__(self):
        self._items: list[Diagnostic] = []

    def report(self, kind: DiagnosticKind, location: str, message: str) -> Diagnostic:
        """Record a diagnostic; an identical one already recorded is not repeated"""
        diag = Diagnostic(kind, location, message)
        if diag not in self._items:
            self._items.append(diag)
        return diag

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._items if d.kind == kind]

    def clear(self):
        self._items.clear()

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
