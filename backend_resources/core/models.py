"""Value objects exchanged between the API layer and the gateway."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet


@dataclass(frozen=True)
class UserRequest:
    """Validated user-creation payload."""
    username: str
    email: str
    password: str = field(repr=False)
    first_name: str
    last_name: str


@dataclass(frozen=True)
class UserResponse:
    """User representation plus the flattened set of assigned role names."""
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    roles: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "roles": sorted(self.roles),
        }


@dataclass(frozen=True)
class ErrorResponse:
    message: str
    status: int = 500

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, derived from verified token claims."""
    username: str
    roles: FrozenSet[str] = frozenset()
