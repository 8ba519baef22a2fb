from __future__ import annotations

import enum
import urllib.parse as urlparse
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import requests
from bs4 import BeautifulSoup

from .config import (
    AuthFlow,
    SessionConfig,
    VanillaAuthError,
    DEFAULT_IDENTIFIER_FIELD,
    EXCLUDED_FIELDS,
    LOGIN_PATH,
    PROFILE_TARGET,
    require_base_url,
)
from .sessions import build_client

SIGNIN_FORM = "#Form_User_SignIn"
TRANSIENT_KEY_INPUT = "#Form_TransientKey"
ERRORS_CONTAINER = ".Messages.Errors"

AJAX_HEADERS = {"X-Requested-With": "XMLHttpRequest"}

# =========================
# Exceptions
# =========================
class TransportError(VanillaAuthError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(VanillaAuthError):
    pass


class TransientKeyError(ProtocolError):
    pass


class AuthenticationRejected(VanillaAuthError):
    def __init__(self, message: str, reason: Optional["LoginError"] = None):
        super().__init__(message)
        self.reason = reason


class LoginError(enum.Enum):
    """
    Known failure texts Vanilla renders inside the errors container, in the
    order they are checked, with the message we surface for each.
    """

    ACCOUNT_NOT_FOUND = ("no account could be found", "Your account could not be found.")
    PASSWORD_INCORRECT = ("password you entered was incorrect", "Your password was incorrect.")
    BAD_LOGIN = (
        "login, double-check",
        "Your login was incorrect. Double-check your username and password, and try again.",
    )

    def __init__(self, needle: str, message: str):
        self.needle = needle
        self.message = message


GENERIC_REJECTION = LoginError.BAD_LOGIN.message
TRANSPORT_FAILURE = "There was an error authenticating your account."


@dataclass(frozen=True)
class UnclassifiedResponse:
    """
    A 200 response from the direct flow that was neither a JSON profile nor
    a recognised error page. Not a confirmed sign-in; inspect body yourself.
    """

    status_code: int
    body: str


AuthResult = Union[bool, Dict[str, Any], UnclassifiedResponse]


# =========================
# HTML helpers
# =========================
def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def default_login_fields(html: str) -> Dict[str, str]:
    """
    Collect the inputs of the sign-in form so we echo back whatever the
    server rendered (hidden ClientHour, Target, etc.), minus EXCLUDED_FIELDS.
    """
    form_el = _soup(html).select_one(SIGNIN_FORM)
    if form_el is None:
        return {}

    data: Dict[str, str] = {}
    for inp in form_el.select("input"):
        name = inp.get("name")
        if not name or name in EXCLUDED_FIELDS:
            continue
        data[name] = inp.get("value") or ""
    return data


def transient_key_from_fragment(fragment: str) -> str:
    el = _soup(fragment).select_one(TRANSIENT_KEY_INPUT)
    if el is None or el.get("value") is None:
        raise TransientKeyError("Could not find a transient key.")
    return el["value"]


def find_login_error(fragment: str) -> Optional[LoginError]:
    """
    Return the first known error found in the errors container, or None
    when there is no container or its text matches nothing we know.
    """
    containers = _soup(fragment).select(ERRORS_CONTAINER)
    if not containers:
        return None

    text = " ".join(el.get_text() for el in containers)
    for err in LoginError:
        if err.needle in text:
            return err
    return None


def body_has_errors(fragment: str) -> bool:
    return find_login_error(fragment) is not None


# =========================
# Session
# =========================
class Authenticator:
    """
    One scripted sign-in session against a Vanilla forum.

    The login page and the post payload are loaded lazily, once, and kept
    for the life of the object; they are never invalidated. Not safe for
    use from more than one thread.

    auth = Authenticator("https://forum.example.com")
    auth.set_credentials("me@example.com", "hunter2")
    auth.authenticate()            # True, or raises
    """

    def __init__(
        self,
        base_url: Optional[str],
        client_options: Optional[Mapping[str, Any]] = None,
        *,
        flow: Union[AuthFlow, str] = AuthFlow.TOKEN,
        login_path: str = LOGIN_PATH,
        target_path: Optional[str] = None,
        identifier_field: str = DEFAULT_IDENTIFIER_FIELD,
        debug: bool = False,
    ):
        self.base_url = require_base_url(base_url)
        self.flow = AuthFlow.parse(flow)
        self.login_path = login_path
        self.target_path = target_path if target_path is not None else self.flow.default_target
        self.identifier_field = identifier_field
        self.debug = debug

        self.client = build_client(self.base_url, client_options)
        # client_options may carry its own base_url
        self.base_url = self.client.base_url

        # Credentials are optional; absent ones are simply not overlaid.
        self.identifier: Optional[str] = None
        self.secret: Optional[str] = None

        self._login_page: Optional[requests.Response] = None
        self._login_page_loaded = False
        self._payload: Dict[str, str] = {}
        self._payload_loaded = False

    @classmethod
    def from_config(cls, cfg: SessionConfig) -> "Authenticator":
        return cls(
            cfg.base_url,
            cfg.client_options,
            flow=cfg.flow,
            login_path=cfg.login_path,
            target_path=cfg.effective_target,
            identifier_field=cfg.identifier_field,
            debug=cfg.debug,
        )

    def dbg(self, msg: str) -> None:
        if self.debug:
            print(f"[DEBUG] {msg}")

    # -------------------- Setup ---------------------- #

    def set_credentials(self, identifier: str, secret: str) -> None:
        self.identifier = identifier
        self.secret = secret

    def set_target_path(self, target_path: str) -> None:
        """
        Change the page Vanilla redirects to after sign-in. An already
        fetched login page is kept as is.
        """
        self.target_path = target_path

    @property
    def login_url(self) -> str:
        if self.target_path is None:
            return self.login_path
        return f"{self.login_path}?Target={urlparse.quote(self.target_path, safe='/')}"

    # -------------------- Requests ---------------------- #

    def _request(self, method: str, url: str, *, failure: str = TRANSPORT_FAILURE, **kwargs) -> requests.Response:
        try:
            r = self.client.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{failure} ({e})") from e
        self.dbg(f"{method} {url} -> {r.status_code}")
        if r.status_code != 200:
            raise TransportError(failure, status_code=r.status_code)
        return r

    def get_login_page(self) -> requests.Response:
        if not self._login_page_loaded:
            self._login_page = self._request("GET", self.login_url, failure="Could not load the sign-in page.")
            self._login_page_loaded = True
        return self._login_page

    def get_default_login_fields(self) -> Dict[str, str]:
        fields = default_login_fields(self.get_login_page().text)
        if not fields:
            self.dbg(f"No {SIGNIN_FORM} inputs found on the sign-in page")
        return fields

    def get_post_data(self) -> Dict[str, str]:
        """
        The live payload: default form fields (loaded once) with the
        credentials overlaid on every call.
        """
        if not self._payload_loaded:
            self._payload = self.get_default_login_fields()
            self._payload_loaded = True

        if self.identifier is not None:
            self._payload[self.identifier_field] = self.identifier
        if self.secret is not None:
            self._payload["Password"] = self.secret

        return self._payload

    def make_authentication_request(self, post_data: Mapping[str, str]) -> Dict[str, Any]:
        """
        AJAX POST to the login URL; Vanilla answers with a JSON envelope
        whose Data member holds the re-rendered form.
        """
        self.dbg(f"Sent fields: {sorted(post_data)}")
        r = self._request("POST", self.login_url, data=dict(post_data), headers=dict(AJAX_HEADERS))
        try:
            body = r.json()
        except ValueError as e:
            raise ProtocolError("Sign-in response was not JSON.") from e
        if not isinstance(body, dict):
            raise ProtocolError(f"Unexpected sign-in response: {type(body).__name__}")
        return body

    # -------------------- Flows ---------------------- #

    def authenticate(self) -> AuthResult:
        if self.flow is AuthFlow.TOKEN:
            return self._authenticate_with_token()
        return self._authenticate_direct()

    def _authenticate_with_token(self) -> bool:
        post_data = self.get_post_data()

        # First round trip only hands us a TransientKey
        body = self.make_authentication_request(post_data)
        post_data["TransientKey"] = transient_key_from_fragment(body.get("Data") or "")
        self.dbg("Got transient key")

        body = self.make_authentication_request(post_data)
        err = find_login_error(body.get("Data") or "")
        if err is not None or body.get("FormSaved") is False:
            raise AuthenticationRejected(GENERIC_REJECTION, reason=err)

        return True

    def _authenticate_direct(self) -> Union[Dict[str, Any], UnclassifiedResponse]:
        post_data = self.get_post_data()
        self.dbg(f"Sent fields: {sorted(post_data)}")

        r = self._request("POST", self.login_url, data=dict(post_data))
        body = r.text

        if self.target_path == PROFILE_TARGET:
            try:
                profile = r.json()
            except ValueError:
                profile = None
            if isinstance(profile, dict) and profile:
                return profile

        err = find_login_error(body)
        if err is not None:
            raise AuthenticationRejected(err.message, reason=err)

        self.dbg("Response matched neither a profile nor a known error")
        return UnclassifiedResponse(status_code=r.status_code, body=body)


__all__ = [
    "Authenticator",
    "AuthResult",
    "AuthenticationRejected",
    "LoginError",
    "ProtocolError",
    "TransientKeyError",
    "TransportError",
    "UnclassifiedResponse",
    "body_has_errors",
    "default_login_fields",
    "find_login_error",
    "transient_key_from_fragment",
]
