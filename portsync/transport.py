"""
HTTP requests with a deadline for the whole exchange.

requests' `timeout=` only bounds connecting and each individual socket read,
so a server trickling its reply a byte at a time could hold a call open
indefinitely. `send` streams the body in small reads and gives up with a
TransportError once `timeout` seconds have passed since the request started.
A single stalled read can still overrun the deadline by at most `timeout`.
"""

import time

import requests

from .errors import TransportError


# Bodies here are small JSON documents; one-byte reads return as soon as
# anything arrives instead of waiting for a full chunk.
READ_SIZE = 1


def send(http, method: str, url: str, timeout: float, **kwargs) -> requests.Response:
    """
    Perform a request and read its body before the deadline.

    Args:
        http: requests.Session or the requests module
        method: HTTP method
        url: Full URL
        timeout: Seconds allowed for the whole request
        **kwargs: Passed through to requests (data, headers, ...)

    Returns:
        The response with its body already loaded

    Raises:
        TransportError: If the request fails or the deadline passes
    """
    deadline = time.monotonic() + timeout
    try:
        response = http.request(method, url, timeout=timeout, stream=True, **kwargs)
    except requests.exceptions.RequestException as e:
        raise TransportError(f"failed to perform request to {url}: {e}") from e

    try:
        body = bytearray()
        if time.monotonic() > deadline:
            raise TransportError(f"request to {url} timed out after {timeout}s")
        for chunk in response.iter_content(chunk_size=READ_SIZE):
            body.extend(chunk)
            if time.monotonic() > deadline:
                raise TransportError(f"request to {url} timed out after {timeout}s")
    except requests.exceptions.RequestException as e:
        raise TransportError(f"failed to read response from {url}: {e}") from e
    finally:
        response.close()

    response._content = bytes(body)
    return response
