"""Tests for AssistantClient."""

from collections.abc import AsyncIterator
from typing import Any

import aiohttp
import pytest
import structlog
from aiohttp import web
from aiohttp.test_utils import TestServer

from topicrelay.config.models import AssistantConfig
from topicrelay.infrastructure.assistant.client import AssistantClient, HttpFailure


class FakeAssistantApi:
    """Records requests and replies with configured responses."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.topic_response = web.json_response({"topicId": "topic-123"})
        self.message_response = web.Response(text="Hello||[]")

    async def handle_topic(self, request: web.Request) -> web.StreamResponse:
        self.requests.append({"path": request.path, "headers": dict(request.headers)})
        return self.topic_response

    async def handle_message(self, request: web.Request) -> web.StreamResponse:
        self.requests.append(
            {
                "path": request.path,
                "headers": dict(request.headers),
                "json": await request.json(),
            }
        )
        return self.message_response

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/v1/chat/topic", self.handle_topic)
        app.router.add_post("/v1/chat/message", self.handle_message)
        return app


@pytest.fixture
def api() -> FakeAssistantApi:
    return FakeAssistantApi()


@pytest.fixture
async def server(api: FakeAssistantApi, aiohttp_server) -> TestServer:
    return await aiohttp_server(api.create_app())


@pytest.fixture
async def client(server: TestServer) -> AsyncIterator[AssistantClient]:
    config = AssistantConfig(api_key="secret-key", base_url=str(server.make_url("/")))
    async with AssistantClient(config, structlog.get_logger()) as assistant:
        yield assistant


class TestCreateTopic:
    """Tests for AssistantClient.create_topic."""

    async def test_returns_topic_id(
        self, client: AssistantClient, api: FakeAssistantApi
    ) -> None:
        result = await client.create_topic()

        assert result == "topic-123"
        assert api.requests[0]["path"] == "/v1/chat/topic"

    async def test_sends_bearer_and_json_headers(
        self, client: AssistantClient, api: FakeAssistantApi
    ) -> None:
        await client.create_topic()

        headers = api.requests[0]["headers"]
        assert headers["Authorization"] == "Bearer secret-key"
        assert headers["Content-Type"] == "application/json"

    async def test_non_2xx_returns_failure(
        self, client: AssistantClient, api: FakeAssistantApi
    ) -> None:
        api.topic_response = web.Response(status=401, text="unauthorized")

        result = await client.create_topic()

        assert result == HttpFailure(status=401, body="unauthorized")
        assert str(result) == "(401): unauthorized"


class TestSendMessage:
    """Tests for AssistantClient.send_message."""

    async def test_returns_raw_body(
        self, client: AssistantClient, api: FakeAssistantApi
    ) -> None:
        api.message_response = web.Response(
            text='Answer||[{"link": "a", "metadata": {"title": "A"}}]'
        )

        result = await client.send_message("topic-123", "What is X?")

        assert result == 'Answer||[{"link": "a", "metadata": {"title": "A"}}]'

    async def test_posts_topic_and_message(
        self, client: AssistantClient, api: FakeAssistantApi
    ) -> None:
        await client.send_message("topic-123", "What is X?")

        request = api.requests[0]
        assert request["path"] == "/v1/chat/message"
        assert request["json"] == {"topicId": "topic-123", "message": "What is X?"}
        assert request["headers"]["Authorization"] == "Bearer secret-key"

    async def test_non_2xx_returns_failure(
        self, client: AssistantClient, api: FakeAssistantApi
    ) -> None:
        api.message_response = web.Response(status=500, text="boom")

        result = await client.send_message("topic-123", "hi")

        assert isinstance(result, HttpFailure)
        assert result.status == 500
        assert result.body == "boom"


class TestSessionOwnership:
    """Tests for session lifecycle."""

    async def test_close_leaves_external_session_open(self, server: TestServer) -> None:
        config = AssistantConfig(api_key="k", base_url=str(server.make_url("/")))
        async with aiohttp.ClientSession() as session:
            assistant = AssistantClient(config, structlog.get_logger(), session=session)
            await assistant.close()

            assert session.closed is False
