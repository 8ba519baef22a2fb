# sessions.py
"""
HTTP client construction for vanilla_authenticator.

Builds the requests.Session every sign-in runs through. The session:

  * resolves relative paths ("/entry/signin?Target=profile.json") against
    the forum's base URL, so callers never assemble absolute URLs;
  * keeps cookies across requests (Vanilla ties the TransientKey to the
    session cookie) unless cookies=False is requested. With cookies off
    the session jar refuses everything, but requests still carries cookies
    between redirect hops of a single request;
  * skips TLS verification unless verify is set;
  * applies a default timeout when one is configured.

Options (see config.merge_client_options)
-----------------------------------------
{
  "base_url": "https://forum.example.com",
  "cookies": true,
  "verify": false,          # or a CA bundle path
  "timeout": 30,            # optional
  "headers": {...},         # optional, merged into session headers
  "proxies": {...}          # optional
}
"""

from __future__ import annotations
from http import cookiejar
from typing import Any, Mapping, Optional

import requests

from .config import merge_client_options


def _abs_url(base_url: str, url: str) -> str:
    if not url:
        return base_url
    if url.startswith(("http://", "https://")):
        return url
    return base_url.rstrip("/") + "/" + url.lstrip("/")


class BaseUrlSession(requests.Session):
    """
    requests.Session whose request paths are relative to a fixed base URL.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = None):
        super().__init__()
        self.base_url = base_url
        self.timeout = timeout

    def request(self, method, url, *args, **kwargs):
        if self.timeout is not None:
            kwargs.setdefault("timeout", self.timeout)
        return super().request(method, _abs_url(self.base_url, url), *args, **kwargs)


def build_client(base_url: str, options: Optional[Mapping[str, Any]] = None) -> BaseUrlSession:
    """
    Return a ready-to-use session for the forum at base_url.
    Caller options are merged over the defaults first.
    """
    opts = merge_client_options(base_url, options)

    sess = BaseUrlSession(opts["base_url"], timeout=opts.get("timeout"))
    sess.verify = opts["verify"]

    if not opts["cookies"]:
        # An empty allow-list refuses every cookie the server sets
        sess.cookies.set_policy(cookiejar.DefaultCookiePolicy(allowed_domains=[]))

    if opts.get("headers"):
        sess.headers.update(opts["headers"])
    if opts.get("proxies"):
        sess.proxies.update(opts["proxies"])

    return sess


__all__ = [
    "BaseUrlSession",
    "build_client",
]
