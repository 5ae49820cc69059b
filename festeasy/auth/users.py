from __future__ import annotations

import logging
from typing import Any

import bcrypt

logger = logging.getLogger(__name__)

ROLES = ("user", "provider")

_users: dict[str, dict[str, Any]] = {}


class UserExistsError(ValueError):
    pass


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def register(username: str, password: str, role: str = "user", full_name: str | None = None) -> dict[str, Any]:
    """Create a user and return its public ``{username, role, full_name}`` view."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    if username in _users:
        raise UserExistsError(f"User already exists: {username}")
    _users[username] = {
        "password_hash": _hash_password(password),
        "role": role,
        "full_name": full_name,
    }
    logger.info("Registered %s account %s", role, username)
    return {"username": username, "role": role, "full_name": full_name}


def _seed_users() -> None:
    """Pre-seed demo accounts on import."""
    register("user", "user123", "user", "Demo Client")
    register("provider", "provider123", "provider", "Mi Negocio de Eventos")


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, role, full_name}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {"username": username, "role": record["role"], "full_name": record["full_name"]}
    return None


_seed_users()
