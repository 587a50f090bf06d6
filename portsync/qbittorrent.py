"""
qBittorrent Web API client.

Provides the QbitClient class, an authenticated session against the
qBittorrent Web UI (API v2):

- login:            POST auth/login with form fields username/password.
                    Succeeds only on 200 with the body "Ok.".
- get_preferences:  POST app/preferences, returns Preferences.
- set_preferences:  POST app/setPreferences with the form field "json".

The session cookie (SID) handed out on login is stored on this client's own
requests.Session and sent with every later request to the host. When the
cookie expires qBittorrent answers 403; callers log in again.

Usage:
    client = QbitClient("http://localhost:8080")
    client.login("admin", "adminadmin")
    prefs = client.get_preferences()
    prefs.listen_port = 51413
    client.set_preferences(prefs)
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from .errors import BadResponseError, DecodeError, LoginFailedError
from .logger import logger
from .transport import send


API_PATH = "api/v2/"
RESPONSE_BODY_OK = "Ok."
RESPONSE_BODY_FAIL = "Fails."
DEFAULT_TIMEOUT = 1.0


@dataclass
class Preferences:
    """qBittorrent application preferences.

    Only the listening port settings are interpreted; every other key is kept
    in `extra` and written back untouched.
    """
    listen_port: int = 0
    random_port: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        if not isinstance(data, dict):
            raise DecodeError(f"expected a json object, got {type(data).__name__}")
        extra = dict(data)
        listen_port = extra.pop("listen_port", 0)
        random_port = extra.pop("random_port", False)
        if not isinstance(listen_port, int) or isinstance(listen_port, bool):
            raise DecodeError(f"non-integer listen_port: {listen_port!r}")
        if not isinstance(random_port, bool):
            raise DecodeError(f"non-boolean random_port: {random_port!r}")
        return cls(listen_port=listen_port, random_port=random_port, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["listen_port"] = self.listen_port
        data["random_port"] = self.random_port
        return data


def normalize_url(url: str) -> str:
    """Append the API prefix to the Web UI URL exactly once."""
    if not url.endswith("/"):
        url += "/"
    return url + API_PATH


def resp_ok(response: requests.Response) -> requests.Response:
    """Raise BadResponseError unless the response is 200 OK."""
    if response.status_code != 200:
        raise BadResponseError(response.status_code, response.reason or "")
    return response


class QbitClient:
    """Session-authenticated client for the qBittorrent Web API."""

    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.url = normalize_url(url)
        self.timeout = timeout
        self.session = session or requests.Session()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.session.close()

    def _post(self, endpoint: str, data: Optional[Dict[str, str]] = None) -> requests.Response:
        """POST form-encoded data to an API endpoint, bounded by the client timeout."""
        url = self.url + endpoint
        return send(self.session, "POST", url, self.timeout, data=data)

    def login(self, username: str, password: str) -> None:
        """Log in and keep the session cookie for later requests.

        Raises LoginFailedError when the credentials are rejected, which is
        not worth retrying, and TransportError/BadResponseError otherwise.
        """
        # A new login starts a new session
        self.session.cookies.clear()

        response = resp_ok(self._post("auth/login", {
            "username": username,
            "password": password,
        }))
        if response.text != RESPONSE_BODY_OK:
            raise LoginFailedError()

        # Cookies from auth/login are scoped to /api/v2/auth by default;
        # re-scope them to the whole host.
        cookies = list(self.session.cookies)
        self.session.cookies.clear()
        for cookie in cookies:
            cookie.path = "/"
            cookie.path_specified = True
            self.session.cookies.set_cookie(cookie)

        logger.debug(f"Logged in to qBittorrent at {self.url} ({len(cookies)} cookies)")

    def get_preferences(self) -> Preferences:
        response = resp_ok(self._post("app/preferences"))
        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"invalid preferences json: {e}") from e
        prefs = Preferences.from_dict(data)
        logger.debug(f"qBittorrent listen_port={prefs.listen_port} random_port={prefs.random_port}")
        return prefs

    def set_preferences(self, prefs: Preferences) -> None:
        # The endpoint answers 200 with an empty body; nothing else to check.
        resp_ok(self._post("app/setPreferences", {
            "json": json.dumps(prefs.to_dict()),
        }))
