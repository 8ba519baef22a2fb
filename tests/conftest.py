"""
Pytest configuration and fixtures.
"""

import json
from unittest.mock import MagicMock

import pytest

from vanilla_authenticator import Authenticator, AuthFlow

BASE_URL = "https://forum.example.com"

SIGNIN_PAGE = """
<html><body>
<div id="Content">
  <form id="Form_User_SignIn" method="post" action="/entry/signin">
    <input type="hidden" id="Form_TransientKey" name="TransientKey" value="" />
    <input type="hidden" id="Form_hpt" name="hpt" value="" />
    <input type="hidden" id="Form_Target" name="Target" value="discussions" />
    <input type="hidden" id="Form_ClientHour" name="ClientHour" value="2026-10-18 15:00" />
    <input type="text" id="Form_Email" name="Email" value="" />
    <input type="password" id="Form_Password" name="Password" />
    <input type="checkbox" id="Form_RememberMe" name="RememberMe" value="1" />
    <input type="checkbox" name="Checkboxes[]" value="RememberMe" />
    <input type="submit" id="Form_SignIn" name="Sign In" value="Sign In" />
  </form>
</div>
</body></html>
"""

TOKEN_FORM = (
    '<form id="Form_User_SignIn" method="post" action="/entry/signin">'
    '<input type="hidden" id="Form_TransientKey" name="TransientKey" value="XYZ" />'
    "</form>"
)


class FakeResponse:
    """Just enough of requests.Response for the session code."""

    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text

    def json(self):
        return json.loads(self.text)


def json_response(payload, status_code=200):
    return FakeResponse(status_code, json.dumps(payload))


@pytest.fixture
def signin_page():
    return FakeResponse(200, SIGNIN_PAGE)


@pytest.fixture
def make_auth():
    """
    Factory for an Authenticator whose HTTP client replays canned responses
    in order. The mock client is reachable as auth.client.
    """

    def _make(*responses, flow=AuthFlow.TOKEN, **kwargs):
        auth = Authenticator(BASE_URL, flow=flow, **kwargs)
        auth.client = MagicMock()
        auth.client.request.side_effect = list(responses)
        return auth

    return _make


def sent_requests(auth):
    """(method, url, kwargs) for every request the session issued."""
    return [(c.args[0], c.args[1], c.kwargs) for c in auth.client.request.call_args_list]
