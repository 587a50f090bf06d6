"""
Forwarded port discovery from gluetun.

The port is read from gluetun's control server (GET /v1/openvpn/portforwarded)
and, when that is not configured or fails, from the JSON file gluetun writes
to a shared volume. Both carry the same {"port": <int>} shape.

If both sources are attempted and both fail, a PortDiscoveryError holding
each cause is raised.
"""

import json
from typing import Optional

import requests

from .config import Settings
from .errors import DecodeError, PortDiscoveryError, TransportError
from .logger import logger
from .transport import send


PORT_FORWARDED_PATH = "/v1/openvpn/portforwarded"
GLUETUN_TIMEOUT = 1.0


def decode_port(text: str) -> int:
    """Decode a {"port": <int>} document. A port of 0 means none is assigned."""
    try:
        data = json.loads(text)
    except ValueError as e:
        raise DecodeError(f"invalid port json: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"expected a json object, got {type(data).__name__}")

    port = data.get("port")
    # bool is an int subclass
    if not isinstance(port, int) or isinstance(port, bool):
        raise DecodeError(f"missing or non-integer port field: {port!r}")
    if port < 0:
        raise DecodeError(f"port must not be negative: {port}")
    return port


def get_port_file(path: str) -> int:
    """Return the forwarded port from a file written by gluetun."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise DecodeError(f"cannot read port file {path}: {e}") from e
    return decode_port(content)


def get_port_api(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = GLUETUN_TIMEOUT,
) -> int:
    """Return the forwarded port from gluetun's control server."""
    url = url.rstrip("/") + PORT_FORWARDED_PATH
    response = send(session or requests, "GET", url, timeout)
    return decode_port(response.text)


class PortSource:
    """Resolves the forwarded port, falling back from the API to the port file.

    The session only keeps connections to gluetun alive between polls; no
    cookies are carried from one poll to the next.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def resolve(self, settings: Settings) -> int:
        api_error = None

        if settings.use_gluetun_api:
            try:
                self.session.cookies.clear()
                return get_port_api(settings.gluetun_url, self.session)
            except (TransportError, DecodeError) as e:
                api_error = e
                logger.debug(f"Gluetun API unavailable: {e}")

        if not settings.gluetun_port_file:
            if api_error is None:
                raise PortDiscoveryError(None, None)
            raise api_error

        try:
            return get_port_file(settings.gluetun_port_file)
        except DecodeError as file_error:
            if api_error is None:
                raise
            raise PortDiscoveryError(api_error, file_error) from file_error

    def close(self):
        self.session.close()
