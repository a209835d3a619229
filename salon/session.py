"""Client-side auth session state.

The state is immutable; every action produces a new ``AuthState`` so a
consumer holds an explicit session object instead of a global singleton.
The server never imports this module; it is exported for API consumers that
track login state against the /auth endpoints.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class AuthState:
    user: Optional[Mapping[str, Any]] = None
    token: Optional[str] = None
    is_authenticated: bool = False
    loading: bool = False
    error: Optional[str] = None

    @classmethod
    def from_token(cls, token: Optional[str]) -> "AuthState":
        return cls(token=token, is_authenticated=bool(token))


def reduce_auth(state: AuthState, action: str, payload: Any = None) -> AuthState:
    if action == "auth_start":
        return replace(state, loading=True, error=None)
    if action == "login_success":
        return AuthState(
            user=payload["user"],
            token=payload["token"],
            is_authenticated=True,
        )
    if action == "auth_failure":
        return replace(state, loading=False, error=payload)
    if action == "logout":
        return AuthState()
    if action == "set_current_user":
        return replace(state, user=payload, is_authenticated=True)
    if action == "clear_error":
        return replace(state, error=None)
    raise ValueError(f"Unknown auth action: {action}")
