# __init__.py
"""
Public, easy-to-use entry points for signing in to a Vanilla forum.

Quick start
-----------
from vanilla_authenticator import login, AuthFlow

# 1) AJAX flow (TransientKey round trip): returns True or raises
login("https://forum.example.com", "me@example.com", "hunter2")

# 2) Classic form POST straight to profile.json: returns the profile dict
profile = login("https://forum.example.com", "me@example.com", "hunter2",
                flow=AuthFlow.DIRECT)
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, Union

from .config import AuthFlow, SessionConfig, ConfigurationError, VanillaAuthError, PROFILE_TARGET
from .auth import (
    Authenticator,
    AuthResult,
    AuthenticationRejected,
    LoginError,
    ProtocolError,
    TransientKeyError,
    TransportError,
    UnclassifiedResponse,
    body_has_errors,
    find_login_error,
)
from .api import fetch_profile as _fetch_profile


# -------- Top-level convenience functions (stable public surface) -------- #

def login(
    base_url: str,
    identifier: str,
    secret: str,
    *,
    flow: Union[AuthFlow, str] = AuthFlow.TOKEN,
    target_path: Optional[str] = None,
    client_options: Optional[Mapping[str, Any]] = None,
    debug: bool = False,
) -> AuthResult:
    """
    Build a session, set credentials and authenticate in one call.
    Returns whatever Authenticator.authenticate() returns for the flow.
    """
    auth = Authenticator(
        base_url,
        client_options,
        flow=flow,
        target_path=target_path,
        debug=debug,
    )
    auth.set_credentials(identifier, secret)
    return auth.authenticate()


# --------------------- Optional: simple OO wrapper ---------------------- #

class VanillaForum:
    """
    Minimal convenience wrapper if you prefer an object API.

    forum = VanillaForum("https://forum.example.com")
    forum.login("me@example.com", "hunter2")
    me = forum.profile()
    """

    def __init__(
        self,
        base_url: str,
        *,
        flow: Union[AuthFlow, str] = AuthFlow.TOKEN,
        target_path: Optional[str] = None,
        client_options: Optional[Mapping[str, Any]] = None,
        debug: bool = False,
        **session_kwargs: Any,
    ):
        self.auth = Authenticator(
            base_url, client_options, flow=flow, target_path=target_path, debug=debug, **session_kwargs
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "VanillaForum":
        """Build from VANILLA_* environment variables (see config.py)."""
        cfg = SessionConfig.from_env(**overrides)
        return cls(
            cfg.base_url,
            flow=cfg.flow,
            target_path=cfg.effective_target,
            client_options=cfg.client_options,
            debug=cfg.debug,
            login_path=cfg.login_path,
            identifier_field=cfg.identifier_field,
        )

    # Auth
    def login(self, identifier: str, secret: str) -> AuthResult:
        self.auth.set_credentials(identifier, secret)
        return self.auth.authenticate()

    # APIs
    def profile(self, path: str = PROFILE_TARGET) -> Dict[str, Any]:
        """Signed-in user's profile, fetched with the session cookies."""
        return _fetch_profile(self.auth, path)


# What we expose as public API
__all__ = [
    "login",
    "VanillaForum",
    "Authenticator",
    "AuthFlow",
    "AuthResult",
    "SessionConfig",
    "UnclassifiedResponse",
    "LoginError",
    "VanillaAuthError",
    "ConfigurationError",
    "TransportError",
    "ProtocolError",
    "TransientKeyError",
    "AuthenticationRejected",
    "body_has_errors",
    "find_login_error",
]
