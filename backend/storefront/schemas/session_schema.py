from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class UserSession:
    """Identity of the caller, resolved per request and passed explicitly into services."""

    user_id: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_role(self, slug: str) -> bool:
        return slug in self.roles
