# ABOUTME: Unit tests for the ASGI request and response adapters
# ABOUTME: Covers scope translation, body reading, message framing and send failures

import pytest

from cascade.implementations.asgi import ASGIIncomingMessage, ASGIServerResponse


def make_scope(**overrides):
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": "POST",
        "path": "/items/ä",
        "raw_path": b"/items/%C3%A4",
        "query_string": b"page=2",
        "headers": [
            (b"host", b"example.com"),
            (b"accept", b"text/html"),
            (b"accept", b"application/json"),
        ],
        "client": ("10.0.0.1", 51000),
    }
    scope.update(overrides)
    return scope


def make_receive(messages):
    queue = list(messages)

    async def receive():
        return queue.pop(0)

    return receive


class RecordingSend:
    def __init__(self, fail_on=None):
        self.messages = []
        self.fail_on = fail_on

    async def __call__(self, message):
        if message["type"] == self.fail_on:
            raise ConnectionResetError("peer went away")
        self.messages.append(message)


class TestASGIIncomingMessage:
    """Test cases for ASGIIncomingMessage."""

    @pytest.mark.unit
    def test_scope_translation(self):
        req = ASGIIncomingMessage(make_scope(), make_receive([]))

        assert req.method == "POST"
        assert req.url == "/items/%C3%A4?page=2"
        assert req.headers["host"] == "example.com"
        assert req.headers["accept"] == "text/html, application/json"
        assert req.remote_address == "10.0.0.1"
        assert req.http_version_major == 1

    @pytest.mark.unit
    def test_quotes_path_without_raw_path(self):
        req = ASGIIncomingMessage(make_scope(raw_path=None, query_string=b""), make_receive([]))
        assert req.url == "/items/%C3%A4"

    @pytest.mark.unit
    def test_missing_client(self):
        req = ASGIIncomingMessage(make_scope(client=None), make_receive([]))
        assert req.remote_address is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_read_joins_chunks(self):
        receive = make_receive(
            [
                {"type": "http.request", "body": b"hello ", "more_body": True},
                {"type": "http.request", "body": b"world", "more_body": False},
            ]
        )
        req = ASGIIncomingMessage(make_scope(), receive)

        assert await req.read() == b"hello world"
        assert await req.read() == b"hello world"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_read_disconnect(self):
        req = ASGIIncomingMessage(make_scope(), make_receive([{"type": "http.disconnect"}]))

        with pytest.raises(ConnectionResetError):
            await req.read()


class TestASGIServerResponse:
    """Test cases for ASGIServerResponse."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_messages(self):
        send = RecordingSend()
        res = ASGIServerResponse(send)
        res.status_code = 201
        res.set_header("Content-Type", "text/plain")
        res.set_header("Set-Cookie", ["a=1", "b=2"])

        await res.write("part1")
        await res.end(b"part2")

        assert send.messages == [
            {
                "type": "http.response.start",
                "status": 201,
                "headers": [
                    (b"content-type", b"text/plain"),
                    (b"set-cookie", b"a=1"),
                    (b"set-cookie", b"b=2"),
                ],
            },
            {"type": "http.response.body", "body": b"part1", "more_body": True},
            {"type": "http.response.body", "body": b"part2", "more_body": False},
        ]
        assert res.finished

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_send_failure_aborts(self):
        errors = []
        res = ASGIServerResponse(RecordingSend(fail_on="http.response.body"))
        res.on_finished(errors.append)

        await res.end("body")

        assert res.aborted
        assert not res.finished
        assert isinstance(errors[0], ConnectionResetError)
