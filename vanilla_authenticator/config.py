# config.py
"""
Configuration and environment defaults for vanilla_authenticator.

This file defines SessionConfig, a lightweight container for everything a
sign-in session needs to know about the forum it talks to.  It reads
defaults from environment variables (a .env file is honoured), merges
caller-supplied HTTP client options over permissive defaults, and names the
two sign-in flows Vanilla supports.

Environment variables
---------------------
VANILLA_BASE_URL    : str   # forum root, e.g. "https://forum.example.com"
VANILLA_VERIFY_SSL  : bool  # "1"/"true" to verify TLS certificates (default off)
VANILLA_TIMEOUT     : float # per-request timeout in seconds (default: none)
VANILLA_AUTH_FLOW   : str   # "token" or "direct"
VANILLA_TARGET_PATH : str   # redirect target appended as ?Target=
"""

from __future__ import annotations
import enum
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional
from dotenv import load_dotenv

# Load environment variables from a .env file if present
load_dotenv()

LOGIN_PATH = "/entry/signin"
PROFILE_TARGET = "profile.json"
DEFAULT_IDENTIFIER_FIELD = "Email"

# Form inputs we never echo back: the checkbox group, "remember me" and the
# submit button itself.
EXCLUDED_FIELDS = frozenset({"Checkboxes[]", "RememberMe", "Sign In"})

# Keys accepted in client_options; anything else is a typo we should surface.
CLIENT_OPTION_KEYS = frozenset({"base_url", "cookies", "verify", "timeout", "headers", "proxies"})


class VanillaAuthError(RuntimeError):
    """Base class for everything this package raises."""


class ConfigurationError(VanillaAuthError):
    pass


class AuthFlow(str, enum.Enum):
    """
    TOKEN:  AJAX sign-in: one POST to obtain a TransientKey, one POST to log in.
    DIRECT: a single classic form POST to /entry/signin?Target=<target>.
    """

    TOKEN = "token"
    DIRECT = "direct"

    @property
    def default_target(self) -> Optional[str]:
        return PROFILE_TARGET if self is AuthFlow.DIRECT else None

    @classmethod
    def parse(cls, value: "AuthFlow | str") -> "AuthFlow":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown auth flow {value!r}; expected 'token' or 'direct'."
            ) from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def require_base_url(base_url: Optional[str]) -> str:
    if base_url is None or not str(base_url).strip():
        raise ConfigurationError("You need to provide a base URL.")
    return str(base_url).strip()


def merge_client_options(base_url: str, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge caller options over the defaults (cookies kept across requests,
    TLS verification off, base URL set). Caller values win.
    """
    defaults: Dict[str, Any] = {
        "base_url": base_url,
        "cookies": True,
        "verify": False,  # Vanilla installs often sit behind self-signed certs
    }
    merged = {**defaults, **dict(options or {})}

    unknown = sorted(set(merged) - CLIENT_OPTION_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown client option(s): {', '.join(unknown)}")

    merged["base_url"] = require_base_url(merged["base_url"])
    return merged


@dataclass(frozen=True)
class SessionConfig:
    """
    Everything needed to build an Authenticator for one forum.
    """

    base_url: str
    flow: AuthFlow = AuthFlow.TOKEN
    client_options: Mapping[str, Any] = field(default_factory=dict, compare=False)
    login_path: str = LOGIN_PATH
    # None means "use the flow's default target"
    target_path: Optional[str] = None
    identifier_field: str = DEFAULT_IDENTIFIER_FIELD
    debug: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", require_base_url(self.base_url))
        object.__setattr__(self, "flow", AuthFlow.parse(self.flow))

    # -------------------- Derived values ---------------------- #

    @property
    def effective_target(self) -> Optional[str]:
        """Target path actually used for the login URL."""
        return self.target_path if self.target_path is not None else self.flow.default_target

    @property
    def merged_client_options(self) -> Dict[str, Any]:
        return merge_client_options(self.base_url, self.client_options)

    def with_flow(self, flow: "AuthFlow | str") -> "SessionConfig":
        """Return a copy of this SessionConfig using another sign-in flow."""
        return replace(self, flow=AuthFlow.parse(flow))

    def with_target_path(self, target_path: Optional[str]) -> "SessionConfig":
        """Return a copy of this SessionConfig with a new redirect target."""
        return replace(self, target_path=target_path)

    # -------------------- Environment ---------------------- #

    @classmethod
    def from_env(cls, **overrides: Any) -> "SessionConfig":
        """
        Build a config from VANILLA_* environment variables.
        Keyword overrides take precedence over the environment.
        """
        client_options: Dict[str, Any] = {"verify": _env_bool("VANILLA_VERIFY_SSL", False)}
        timeout = _env_float("VANILLA_TIMEOUT")
        if timeout is not None:
            client_options["timeout"] = timeout
        client_options.update(overrides.pop("client_options", None) or {})

        values: Dict[str, Any] = {
            "base_url": os.getenv("VANILLA_BASE_URL", ""),
            "flow": os.getenv("VANILLA_AUTH_FLOW", AuthFlow.TOKEN.value),
            "target_path": os.getenv("VANILLA_TARGET_PATH") or None,
            "client_options": client_options,
        }
        values.update(overrides)
        return cls(**values)


__all__ = [
    "AuthFlow",
    "SessionConfig",
    "ConfigurationError",
    "VanillaAuthError",
    "merge_client_options",
    "require_base_url",
    "LOGIN_PATH",
    "PROFILE_TARGET",
    "EXCLUDED_FIELDS",
]
