"""Role-Based Access Control helpers."""
from __future__ import annotations
from typing import Iterable


def collect_roles(*sources) -> list[str]:
    """Collect all roles from realm_access and resource_access claims."""
    roles = []
    for source in sources:
        if not isinstance(source, dict):
            continue
        realm_access = source.get("realm_access")
        if isinstance(realm_access, dict):
            roles.extend(r for r in realm_access.get("roles", []) if r not in roles)
        resource_access = source.get("resource_access")
        if isinstance(resource_access, dict):
            for client_access in resource_access.values():
                if not isinstance(client_access, dict):
                    continue
                roles.extend(r for r in client_access.get("roles", []) if r not in roles)
    return roles


def normalize_role(role: str) -> str:
    """Lowercase a role name and drop a Spring-style ``ROLE_`` prefix."""
    role = role.strip().lower()
    if role.startswith("role_"):
        role = role[len("role_"):]
    return role


def principal_name(claims: dict) -> str:
    """Get the caller's username from token claims."""
    for key in ("preferred_username", "email", "sub"):
        value = claims.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def has_any_role(granted: Iterable[str], required: Iterable[str]) -> bool:
    """True when no role is required or the caller holds at least one of them."""
    required_set = {normalize_role(r) for r in required if r}
    if not required_set:
        return True
    granted_set = {normalize_role(r) for r in granted or [] if isinstance(r, str)}
    return bool(required_set & granted_set)
