"""Result of a single name lookup (or of a retried series of lookups)."""

from dataclasses import dataclass, replace
from typing import Optional

SUCCESS = "success"
TRANSIENT = "transient"
PERMANENT = "permanent"


@dataclass(frozen=True)
class LookupOutcome:
    kind: str
    name: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    attempts: int = 1

    @classmethod
    def success(cls, name: str, status_code: Optional[int] = 200) -> "LookupOutcome":
        return cls(SUCCESS, name=name, status_code=status_code)

    @classmethod
    def transient(cls, error: str, status_code: Optional[int] = None) -> "LookupOutcome":
        return cls(TRANSIENT, status_code=status_code, error=error)

    @classmethod
    def permanent(cls, error: str, status_code: Optional[int] = None) -> "LookupOutcome":
        return cls(PERMANENT, status_code=status_code, error=error)

    @property
    def ok(self) -> bool:
        return self.kind == SUCCESS

    @property
    def is_transient(self) -> bool:
        return self.kind == TRANSIENT

    def with_attempts(self, attempts: int) -> "LookupOutcome":
        return replace(self, attempts=attempts)
