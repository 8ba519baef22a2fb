from __future__ import annotations
from typing import Any, Dict
import requests

from .auth import Authenticator, ProtocolError, TransportError
from .config import PROFILE_TARGET


def fetch_profile(auth: Authenticator, path: str = PROFILE_TARGET) -> Dict[str, Any]:
    """
    GET a JSON resource through an authenticated session's cookies.
    The token flow only confirms sign-in; use this to load the profile after.
    """
    try:
        r = auth.client.get(path)
    except requests.RequestException as e:
        raise TransportError(f"GET {path} failed ({e})") from e
    if r.status_code != 200:
        raise TransportError(f"GET {path} failed: {r.status_code}", status_code=r.status_code)
    try:
        data = r.json()
    except ValueError as e:
        raise ProtocolError(f"{path} did not return JSON") from e
    if not isinstance(data, dict):
        raise ProtocolError(f"{path} returned {type(data).__name__}, expected an object")
    return data
