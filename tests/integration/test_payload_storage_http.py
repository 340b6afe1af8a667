"""
Integration tests: PayloadStorage against a real HTTP endpoint on 127.0.0.1.

The endpoint is a threaded http.server that stores PUT bodies in memory and
serves them back on GET, standing in for a pre-signed object store.
"""

import hashlib
import io
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from libs.payload_storage import (
    PayloadStorage,
    PayloadStorageConfig,
    TransferFailed,
)


class _ObjectStoreHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass

    def do_PUT(self):
        key = self.path.split("?", 1)[0]
        if key.startswith("/fail/"):
            self.rfile.read(int(self.headers.get("Content-Length", 0)))
            self._reply(500, b"<Error>InternalError</Error>")
            return
        length = int(self.headers["Content-Length"])
        self.server.objects[key] = self.rfile.read(length)
        self.server.put_headers.append(dict(self.headers))
        self._reply(200, b"")

    def do_GET(self):
        key = self.path.split("?", 1)[0]
        body = self.server.objects.get(key)
        if body is None:
            self._reply(404, b"<Error>NoSuchKey</Error>")
            return
        self._reply(200, body)

    def _reply(self, status: int, body: bytes):
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


@pytest.fixture
def object_store():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _ObjectStoreHandler)
    server.objects = {}
    server.put_headers = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def _url(server, key: str) -> str:
    host, port = server.server_address[:2]
    return f"http://{host}:{port}/{key}?X-Amz-Signature=deadbeef&X-Amz-Expires=300"


def _direct_session() -> requests.Session:
    # Ignore proxy settings from the environment; the endpoint is loopback
    session = requests.Session()
    session.trust_env = False
    return session


@pytest.fixture
def storage():
    return PayloadStorage(
        PayloadStorageConfig(connect_timeout_s=5, read_timeout_s=10, chunk_size=4096),
        session_factory=_direct_session,
    )


def test_upload_then_download(object_store, storage):
    payload = b'{"output": "' + b"a" * 3_000_000 + b'"}'

    storage.upload(_url(object_store, "tasks/1/output.json"), io.BytesIO(payload), len(payload))

    assert object_store.objects["/tasks/1/output.json"] == payload
    assert object_store.put_headers[0]["Content-Length"] == str(len(payload))
    assert "Transfer-Encoding" not in object_store.put_headers[0]

    with storage.download(_url(object_store, "tasks/1/output.json")) as stream:
        digest = hashlib.sha256()
        for chunk in stream.iter_chunks():
            digest.update(chunk)

    assert digest.hexdigest() == hashlib.sha256(payload).hexdigest()


def test_upload_empty_payload(object_store, storage):
    storage.upload(_url(object_store, "empty.json"), io.BytesIO(b""), 0)

    assert object_store.objects["/empty.json"] == b""
    assert object_store.put_headers[0]["Content-Length"] == "0"


def test_upload_server_error_is_not_raised(object_store, storage):
    storage.upload(_url(object_store, "fail/output.json"), io.BytesIO(b"{}"), 2)

    assert "/fail/output.json" not in object_store.objects


def test_download_missing_is_absent(object_store, storage):
    assert storage.download(_url(object_store, "missing.json")) is None


def test_unreachable_endpoint():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    config = PayloadStorageConfig(connect_timeout_s=2, read_timeout_s=2)
    storage = PayloadStorage(config, session_factory=_direct_session)

    with pytest.raises(TransferFailed):
        storage.upload(f"http://127.0.0.1:{port}/key", io.BytesIO(b"abc"), 3)
    with pytest.raises(TransferFailed):
        storage.download(f"http://127.0.0.1:{port}/key")


def test_concurrent_transfers(object_store, storage):
    payloads = {f"k{i}": bytes([i]) * (50_000 + i) for i in range(8)}
    errors = []

    def _roundtrip(key, data):
        try:
            storage.upload(_url(object_store, key), io.BytesIO(data), len(data))
            with storage.download(_url(object_store, key)) as stream:
                assert stream.read() == data
        except Exception as e:  # surfaced below
            errors.append(e)

    threads = [threading.Thread(target=_roundtrip, args=item) for item in payloads.items()]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []
    assert {k.lstrip("/"): v for k, v in object_store.objects.items()} == payloads
