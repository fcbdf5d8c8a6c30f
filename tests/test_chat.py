"""Chat endpoint: turn persistence, SSE framing and error reporting."""
import asyncio
import json

import pytest
from dependency_injector import providers

from api.features.conversation.entities import MessageRole
from api.features.conversation.service import ConversationService
from api.shared.exceptions import DatabaseError
from streamlit_ui.stream_consumer import iter_frames
from tests.fakes import FakeCompletionClient

CHAT_URL = "/api/v1/chat"
CONVERSATIONS_URL = "/api/v1/conversations"

PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="


def _frames(response):
    return list(iter_frames(response.text.splitlines()))


def _chunks(frames):
    return "".join(f["content"] for f in frames if f["type"] == "chunk")


class TestTextTurn:
    def test_new_conversation_is_created_and_streamed(self, client):
        resp = client.post(CHAT_URL, json={"message": "Hello", "type": "text"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"

        frames = _frames(resp)
        assert [f["type"] for f in frames] == ["chunk", "chunk", "chunk", "done"]
        assert _chunks(frames) == "Hello, world"

        done = frames[-1]
        conversation_id = done["conversationId"]
        assert all(f["conversationId"] == conversation_id for f in frames[:-1])

        conversation = client.get(f"{CONVERSATIONS_URL}/{conversation_id}").json()
        assert conversation["title"] == "Hello"
        assert [m["role"] for m in conversation["messages"]] == ["user", "assistant"]
        assert conversation["messages"][0]["content"] == "Hello"
        assert conversation["messages"][1]["content"] == "Hello, world"
        assert done["messageId"] == conversation["messages"][0]["id"]

    def test_frames_are_sse_formatted(self, client):
        resp = client.post(CHAT_URL, json={"message": "Hi"})

        raw_frames = [f for f in resp.text.split("\n\n") if f]
        assert raw_frames
        assert all(f.startswith("data: ") for f in raw_frames)
        assert resp.text.endswith("\n\n")

    def test_long_message_title_is_truncated(self, client):
        message = "x" * 60
        resp = client.post(CHAT_URL, json={"message": message})
        conversation_id = _frames(resp)[-1]["conversationId"]

        conversation = client.get(f"{CONVERSATIONS_URL}/{conversation_id}").json()
        assert conversation["title"] == "x" * 50 + "..."

    def test_title_of_exactly_fifty_characters_is_kept(self, client):
        message = "y" * 50
        resp = client.post(CHAT_URL, json={"message": message})
        conversation_id = _frames(resp)[-1]["conversationId"]

        conversation = client.get(f"{CONVERSATIONS_URL}/{conversation_id}").json()
        assert conversation["title"] == message

    def test_follow_up_turn_replays_history(self, client, fake_completion):
        first = client.post(CHAT_URL, json={"message": "Hello"})
        conversation_id = _frames(first)[-1]["conversationId"]

        second = client.post(
            CHAT_URL, json={"message": "And then?", "conversationId": conversation_id}
        )
        assert _frames(second)[-1]["conversationId"] == conversation_id

        sent = fake_completion.calls[-1]["messages"]
        assert [m["role"] for m in sent] == ["system", "user", "assistant", "user"]
        assert sent[1]["content"] == "Hello"
        assert sent[2]["content"] == "Hello, world"
        assert sent[3]["content"] == "And then?"

        conversation = client.get(f"{CONVERSATIONS_URL}/{conversation_id}").json()
        assert conversation["messageCount"] == 4
        assert [m["role"] for m in conversation["messages"]] == [
            "user",
            "assistant",
            "user",
            "assistant",
        ]

    def test_text_turn_generation_parameters(self, client, fake_completion):
        client.post(CHAT_URL, json={"message": "Hello"})

        call = fake_completion.calls[-1]
        assert call["model"] == "gpt-4o"
        assert call["max_tokens"] == 2000
        assert call["temperature"] == pytest.approx(0.7)
        assert call["messages"][0]["role"] == "system"


class TestImageTurn:
    def test_image_message_keeps_caption_in_metadata(self, client, fake_completion):
        resp = client.post(
            CHAT_URL,
            json={
                "message": "What is this?",
                "type": "image",
                "imageData": PNG_DATA_URL,
                "fileName": "pixel.png",
            },
        )
        assert resp.status_code == 200
        conversation_id = _frames(resp)[-1]["conversationId"]

        conversation = client.get(f"{CONVERSATIONS_URL}/{conversation_id}").json()
        user_message = conversation["messages"][0]
        assert user_message["type"] == "image"
        assert user_message["content"] == PNG_DATA_URL
        assert user_message["metadata"]["originalText"] == "What is this?"
        assert user_message["metadata"]["mimeType"] == "image/png"
        assert user_message["metadata"]["fileName"] == "pixel.png"
        assert user_message["metadata"]["fileSize"] == 8

        call = fake_completion.calls[-1]
        assert call["max_tokens"] == 1000
        current = call["messages"][-1]
        assert current["content"][0] == {"type": "text", "text": "What is this?"}
        assert current["content"][1]["image_url"]["url"] == PNG_DATA_URL

    def test_image_history_is_replayed_with_caption(self, client, fake_completion):
        first = client.post(
            CHAT_URL,
            json={"message": "Describe", "type": "image", "imageData": PNG_DATA_URL},
        )
        conversation_id = _frames(first)[-1]["conversationId"]

        client.post(CHAT_URL, json={"message": "More", "conversationId": conversation_id})

        replayed = fake_completion.calls[-1]["messages"][1]
        assert replayed["role"] == "user"
        assert replayed["content"][0]["text"] == "Describe"
        assert replayed["content"][1]["image_url"]["url"] == PNG_DATA_URL


class TestRejectedTurns:
    def test_unknown_conversation_is_404_and_writes_nothing(self, client, fake_completion):
        resp = client.post(
            CHAT_URL, json={"message": "Hello", "conversationId": "does-not-exist"}
        )

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Conversation not found"
        assert client.get(CONVERSATIONS_URL).json() == []
        assert fake_completion.calls == []

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"message": ""},
            {"message": "Hi", "type": "audio"},
            {"message": "Look", "type": "image"},
        ],
    )
    def test_invalid_body_is_400_with_details(self, client, fake_completion, body):
        resp = client.post(CHAT_URL, json=body)

        assert resp.status_code == 400
        payload = resp.json()
        assert payload["status_code"] == 400
        assert payload["details"]
        assert {"loc", "msg", "type"} <= set(payload["details"][0])
        assert client.get(CONVERSATIONS_URL).json() == []
        assert fake_completion.calls == []


class TestProviderFailure:
    @pytest.fixture
    def fake_completion(self):
        return FakeCompletionClient(["partial ", "reply"], fail_after=1)

    def test_error_frame_and_only_user_message_kept(self, client):
        resp = client.post(CHAT_URL, json={"message": "Hello"})

        assert resp.status_code == 200
        frames = _frames(resp)
        assert [f["type"] for f in frames] == ["chunk", "error"]
        assert frames[-1]["error"] == "Failed to generate response"

        conversations = client.get(CONVERSATIONS_URL).json()
        assert len(conversations) == 1
        conversation = client.get(f"{CONVERSATIONS_URL}/{conversations[0]['id']}").json()
        assert [m["role"] for m in conversation["messages"]] == ["user"]


class TestPersistenceFailure:
    def test_prepare_failure_is_generic_500(self, client, monkeypatch, fake_completion):
        async def failing(self, title, *, db_session):
            raise DatabaseError("secret dsn leak", {"reason": "pw=hunter2"})

        monkeypatch.setattr(ConversationService, "create_conversation", failing)

        resp = client.post(CHAT_URL, json={"message": "Hello"})

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Internal server error"
        assert "secret" not in resp.text
        assert "hunter2" not in resp.text
        assert fake_completion.calls == []

    def test_assistant_persist_failure_ends_with_error_frame(self, client, monkeypatch):
        original = ConversationService.append_message

        async def failing_for_assistant(self, conversation_id, *, role, **kwargs):
            if role == MessageRole.ASSISTANT:
                raise DatabaseError("disk full")
            return await original(self, conversation_id, role=role, **kwargs)

        monkeypatch.setattr(ConversationService, "append_message", failing_for_assistant)

        resp = client.post(CHAT_URL, json={"message": "Hello"})

        assert resp.status_code == 200
        frames = _frames(resp)
        assert [f["type"] for f in frames] == ["chunk", "chunk", "chunk", "error"]
        assert frames[-1]["error"] == "Failed to generate response"
        assert "disk full" not in resp.text

        conversation_id = frames[0]["conversationId"]
        conversation = client.get(f"{CONVERSATIONS_URL}/{conversation_id}").json()
        assert [m["role"] for m in conversation["messages"]] == ["user"]


class TestClientDisconnect:
    @pytest.mark.asyncio
    async def test_dropped_connection_saves_no_reply(self, app, database):
        fake = FakeCompletionClient([f"t{i} " for i in range(50)], delay=0.01)
        infrastructure = app.container.infrastructure
        body = json.dumps({"message": "Hello"}).encode()
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "path": CHAT_URL,
            "raw_path": CHAT_URL.encode(),
            "root_path": "",
            "query_string": b"",
            "headers": [
                (b"host", b"testserver"),
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode()),
            ],
            "client": ("testclient", 50000),
            "server": ("testserver", 80),
        }
        first_chunk = asyncio.Event()
        request_read = False
        sent = []

        async def receive():
            nonlocal request_read
            if not request_read:
                request_read = True
                return {"type": "http.request", "body": body, "more_body": False}
            await first_chunk.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)
            if message["type"] == "http.response.body" and message.get("body"):
                first_chunk.set()

        with infrastructure.database.override(providers.Object(database)), \
                infrastructure.completion_client.override(providers.Object(fake)):
            await asyncio.wait_for(app(scope, receive, send), timeout=10)

        streamed = b"".join(m.get("body", b"") for m in sent if m["type"] == "http.response.body")
        frames = list(iter_frames(streamed.decode().splitlines()))
        assert frames
        assert len(frames) < len(fake.tokens)
        assert all(f["type"] == "chunk" for f in frames)

        async with database.get_session() as session:
            _, messages = await ConversationService().get_conversation(
                frames[0]["conversationId"], db_session=session
            )
        assert [m.role for m in messages] == [MessageRole.USER]


class TestHealth:
    def test_health_endpoints(self, client):
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/ready").status_code == 200
        body = client.get(f"{CHAT_URL}/health").json()
        assert body["status"] == "ok"
        assert body["data"]["status"] == "healthy"
