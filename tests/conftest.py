import socket
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, List, Tuple, Union
from urllib.parse import parse_qs

import pytest

from portsync.config import Settings


@dataclass
class Reply:
    status: int = 200
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Dict[str, str]
    body: str

    @property
    def form(self) -> Dict[str, str]:
        return {k: v[0] for k, v in parse_qs(self.body, keep_blank_values=True).items()}


class FakeServer:
    """HTTP server on 127.0.0.1 answering from a table of canned replies."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Union[Reply, Callable[[RecordedRequest], Reply]]] = {}
        self.requests: List[RecordedRequest] = []
        self._httpd = ThreadingHTTPServer(("127.0.0.1", 0), self._handler_class())
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}"

    @property
    def host(self) -> str:
        return self._httpd.server_address[0]

    @property
    def port(self) -> int:
        return self._httpd.server_address[1]

    def route(self, method: str, path: str, reply):
        self.routes[(method, path)] = reply

    def requests_to(self, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.path == path]

    def start(self):
        self._thread.start()

    def stop(self):
        self._httpd.shutdown()
        self._httpd.server_close()

    def _handler_class(self):
        server = self

        class Handler(BaseHTTPRequestHandler):
            def _handle(self):
                length = int(self.headers.get("Content-Length") or 0)
                body = self.rfile.read(length).decode("utf-8") if length else ""
                request = RecordedRequest(
                    method=self.command,
                    path=self.path,
                    headers=dict(self.headers.items()),
                    body=body,
                )
                server.requests.append(request)

                reply = server.routes.get((self.command, self.path))
                if reply is None:
                    reply = Reply(404, "Not Found")
                elif callable(reply):
                    reply = reply(request)

                payload = reply.body.encode("utf-8")
                self.send_response(reply.status)
                for name, value in reply.headers.items():
                    self.send_header(name, value)
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            do_GET = _handle
            do_POST = _handle

            def log_message(self, format, *args):
                pass

        return Handler


@pytest.fixture
def fake_server():
    server = FakeServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def closed_port():
    """A localhost port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def make_settings():
    def factory(**overrides):
        values = dict(
            qbit_host="127.0.0.1",
            qbit_port=8080,
            qbit_username="admin",
            qbit_password="adminadmin",
            gluetun_host="127.0.0.1",
            gluetun_port=8000,
            gluetun_port_file="",
            interval=0,
            timeout=1.0,
            login_attempts=3,
            login_delay=0,
        )
        values.update(overrides)
        return Settings(**values)
    return factory


class SlowServer:
    """
    Raw socket server that accepts connections and then either never answers
    ("stall") or sends a 200 reply whose body trickles out one byte per
    `interval` seconds ("drip").
    """

    def __init__(self, mode: str, body: bytes = b'{"port": 12345}' + b" " * 40, interval: float = 0.25):
        self.mode = mode
        self.body = body
        self.interval = interval
        self._stop = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(8)
        self._sock.settimeout(0.1)
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    @property
    def host(self) -> str:
        return "127.0.0.1"

    @property
    def port(self) -> int:
        return self._sock.getsockname()[1]

    def start(self):
        self._thread.start()

    def stop(self):
        self._stop.set()
        self._thread.join(2)
        self._sock.close()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._reply, args=(conn,), daemon=True).start()

    def _reply(self, conn):
        try:
            conn.settimeout(1)
            conn.recv(65536)
            if self.mode == "drip":
                conn.sendall(
                    b"HTTP/1.1 200 OK\r\n"
                    b"Content-Type: application/json\r\n"
                    + f"Content-Length: {len(self.body)}\r\n\r\n".encode()
                )
                for byte in self.body:
                    if self._stop.wait(self.interval):
                        break
                    conn.sendall(bytes([byte]))
            else:
                self._stop.wait(10)
        except OSError:
            pass
        finally:
            conn.close()


@pytest.fixture
def slow_server():
    servers = []

    def factory(mode: str, **kwargs) -> SlowServer:
        server = SlowServer(mode, **kwargs)
        server.start()
        servers.append(server)
        return server

    yield factory
    for server in servers:
        server.stop()
