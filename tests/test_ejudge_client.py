import socket
import threading
import time
from urllib.parse import parse_qs

import httpx
import pytest

from adapters.ejudge_client import EjudgeRegistrationClient, build_registration_form
from core.domain.models import Action, UserSpec
from core.errors import ApplicationError, ContentTypeError, DecodeError, TransportError
from core.services.registration_batch import BatchRequest, run_registration_batch

ALICE = UserSpec(id=12, login="12", name="Alice")
BOB = UserSpec(login="bob", name="Bob")


def make_client(handler, *, base_url="http://ejudge.test/", token="Bearer secret", timeout=None):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return EjudgeRegistrationClient(http, base_url=base_url, token=token, timeout=timeout)


def json_reply(payload: str, status: int = 200, content_type: str = "application/json"):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=payload.encode(), headers={"Content-Type": content_type})

    return handler


def test_register_form():
    assert build_registration_form(101, ALICE, Action.REGISTER) == {
        "other_user_id": "12",
        "other_user_login": "12",
        "contest_id": "101",
        "op": "upsert",
        "status": "ok",
        "name": "Alice",
        "ignore": "true",
    }


def test_unregister_form_without_id():
    assert build_registration_form(7, BOB, Action.UNREGISTER) == {
        "other_user_login": "bob",
        "contest_id": "7",
        "op": "delete",
        "ignore": "true",
    }


def test_request_shape():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "result": True, "action": "upsert"})

    client = make_client(handler, token="AQAA123")
    client.change_registration(101, ALICE, Action.REGISTER)

    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == "http://ejudge.test/ej/api/v1/master/change-registration"
    assert request.headers["Authorization"] == "AQAA123"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert request.headers["Accept"] == "application/json"
    form = parse_qs(request.content.decode())
    assert form["op"] == ["upsert"]
    assert form["other_user_id"] == ["12"]
    assert form["name"] == ["Alice"]


def test_success_through_html_wrapper():
    client = make_client(
        json_reply('<html><pre>{"ok":true,"result":true}</pre></html>', content_type="text/html")
    )
    client.change_registration(101, BOB, Action.UNREGISTER)


def test_server_error_object():
    client = make_client(
        json_reply(
            '{"ok":false,"error":{"message":"User is blocked","num":5,"symbol":"ERR_BLOCKED","log_id":"x9"}}'
        )
    )

    with pytest.raises(ApplicationError, match="User is blocked") as excinfo:
        client.change_registration(101, ALICE, Action.REGISTER)
    assert "code 5, symbol ERR_BLOCKED, log x9" in str(excinfo.value)


def test_result_string_is_surfaced():
    client = make_client(json_reply('{"ok":false,"result":"contest is closed"}'))

    with pytest.raises(ApplicationError, match="contest is closed"):
        client.change_registration(101, ALICE, Action.REGISTER)


def test_not_acknowledged():
    client = make_client(json_reply('{"ok":true,"result":false}'))

    with pytest.raises(ApplicationError, match="not acknowledged"):
        client.change_registration(101, ALICE, Action.REGISTER)


def test_non_2xx_status():
    client = make_client(json_reply("x" * 300, status=503, content_type="text/plain"))

    with pytest.raises(TransportError) as excinfo:
        client.change_registration(101, ALICE, Action.REGISTER)

    message = str(excinfo.value)
    assert "unexpected status 503 Service Unavailable" in message
    assert message.endswith("x" * 200 + "...")


def test_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = make_client(handler)

    with pytest.raises(TransportError, match="sending request"):
        client.change_registration(101, ALICE, Action.REGISTER)


def test_html_without_json():
    client = make_client(json_reply("<h1>Forbidden</h1>", content_type="text/html"))

    with pytest.raises(ContentTypeError):
        client.change_registration(101, ALICE, Action.REGISTER)


def test_malformed_json():
    client = make_client(json_reply("not json"))

    with pytest.raises(DecodeError):
        client.change_registration(101, ALICE, Action.REGISTER)


def test_null_error_fields_keep_the_code():
    client = make_client(json_reply('{"ok": false, "error": {"message": null, "num": 5, "symbol": null}}'))

    with pytest.raises(ApplicationError, match=r"code 5"):
        client.change_registration(101, ALICE, Action.REGISTER)


def test_non_ascii_token_fails_before_sending():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "result": True})

    client = make_client(handler, token="tökén")

    with pytest.raises(TransportError, match="creating request"):
        client.change_registration(101, ALICE, Action.REGISTER)
    assert seen == []


def test_non_ascii_token_is_recorded_per_call():
    client = make_client(lambda request: httpx.Response(200, json={"ok": True, "result": True}), token="tökén")

    report = run_registration_batch(client, BatchRequest(contests=[1, 2], users=[ALICE]))

    assert len(report.failures) == 2
    assert all(o.error.startswith("creating request") for o in report.failures)


def test_deadline_covers_a_slow_body():
    def trickle():
        for _ in range(20):
            time.sleep(0.1)
            yield b" "

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=trickle(), headers={"Content-Type": "application/json"})

    client = make_client(handler, timeout=0.25)

    started = time.monotonic()
    with pytest.raises(TransportError, match="deadline of 0.25s exceeded"):
        client.change_registration(101, ALICE, Action.REGISTER)
    assert time.monotonic() - started < 1.0


@pytest.fixture
def slow_server():
    """Local HTTP server that sends a 200 header, then one body byte every 0.1s."""

    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    stop = threading.Event()

    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        with conn:
            data = b""
            while b"\r\n\r\n" not in data:
                chunk = conn.recv(4096)
                if not chunk:
                    return
                data += chunk
            try:
                conn.sendall(
                    b"HTTP/1.1 200 OK\r\n"
                    b"Content-Type: application/json\r\n"
                    b"Content-Length: 100\r\n\r\n"
                )
                for _ in range(100):
                    if stop.is_set():
                        return
                    conn.sendall(b" ")
                    time.sleep(0.1)
            except OSError:
                return

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    host, port = listener.getsockname()
    yield f"http://{host}:{port}"
    stop.set()
    listener.close()
    thread.join(timeout=2)


def test_deadline_against_a_trickling_server(slow_server):
    with httpx.Client(timeout=0.3, trust_env=False) as http:
        client = EjudgeRegistrationClient(http, base_url=slow_server, token="t", timeout=0.5)

        started = time.monotonic()
        with pytest.raises(TransportError, match="deadline"):
            client.change_registration(101, ALICE, Action.REGISTER)
        elapsed = time.monotonic() - started

    # The full body would take ten seconds.
    assert elapsed < 3
