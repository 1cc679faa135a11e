import pytest

from mood_journal.errors import UpstreamServiceError
from mood_journal.services import chat_service
from mood_journal.services.chat_service import APOLOGY_REPLY, EMPTY_REPLY, SYSTEM_PROMPT, ChatRelay


def test_build_transcript_prepends_system_and_normalizes():
    transcript = chat_service.build_transcript(
        [
            {"role": "assistant", "text": "Hi, what's on your mind?"},
            {"role": "user", "content": "Tired today"},
            {"role": "user", "content": ""},
            {"role": "bot", "content": "That sounds hard."},
        ]
    )
    assert transcript[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert transcript[1:] == [
        {"role": "assistant", "content": "Hi, what's on your mind?"},
        {"role": "user", "content": "Tired today"},
        {"role": "assistant", "content": "That sounds hard."},
    ]


def test_build_transcript_without_messages():
    assert chat_service.build_transcript(None) == [{"role": "system", "content": SYSTEM_PROMPT}]


def test_build_transcript_skips_malformed_input():
    system_only = [{"role": "system", "content": SYSTEM_PROMPT}]
    assert chat_service.build_transcript("hello") == system_only
    assert chat_service.build_transcript({"role": "user", "content": "hi"}) == system_only
    transcript = chat_service.build_transcript(
        ["stray", {"role": "user", "content": 42}, {"role": "user", "content": None, "text": "kept"}]
    )
    assert transcript[1:] == [{"role": "user", "content": "kept"}]


@pytest.mark.asyncio
async def test_relay_returns_reply(completion):
    relay = ChatRelay(completion=completion)
    reply = await relay.relay([{"role": "user", "content": "hello"}])
    assert reply == "I hear you."
    assert completion.calls[0][0]["role"] == "system"


@pytest.mark.asyncio
async def test_relay_never_raises_on_upstream_failure():
    def boom(messages):
        raise ConnectionError("rate limited")

    relay = ChatRelay(completion=boom)
    assert await relay.relay([{"role": "user", "content": "hello"}]) == APOLOGY_REPLY
    with pytest.raises(UpstreamServiceError):
        await relay.complete([{"role": "user", "content": "hello"}])


@pytest.mark.asyncio
async def test_relay_with_empty_completion():
    relay = ChatRelay(completion=lambda messages: None)
    assert await relay.relay([]) == EMPTY_REPLY


@pytest.mark.asyncio
async def test_relay_without_api_key(monkeypatch, settings):
    settings.groq_api_key = None
    monkeypatch.setattr(chat_service.llm, "get_settings", lambda: settings)
    assert await ChatRelay().relay([{"role": "user", "content": "hi"}]) == APOLOGY_REPLY


def test_chat_endpoint(client, completion):
    resp = client.post("/api/chat", json={"messages": [{"role": "user", "text": "I can't sleep"}]})
    assert resp.status_code == 200
    assert resp.json() == {"reply": "I hear you."}
    assert completion.calls[0][-1] == {"role": "user", "content": "I can't sleep"}


def test_chat_endpoint_ignores_non_list_messages(client, completion):
    resp = client.post("/api/chat", json={"messages": "hi there"})
    assert resp.status_code == 200
    assert completion.calls[0] == [{"role": "system", "content": SYSTEM_PROMPT}]

    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": {"nested": True}}]})
    assert resp.status_code == 200
    assert len(completion.calls[1]) == 1


def test_chat_endpoint_upstream_failure(client, completion):
    completion.error = RuntimeError("Groq returned no choices")
    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert resp.status_code == 500
    assert resp.json() == {"error": "chat server error", "reply": APOLOGY_REPLY}


class _FakeGroq:
    def __init__(self, response):
        self.response = response
        self.kwargs = None
        self.chat = self
        self.completions = self

    def create(self, **kwargs):
        self.kwargs = kwargs
        return self.response


class _Choice:
    def __init__(self, content):
        self.message = type("Message", (), {"content": content})()


def test_groq_wrapper_returns_first_choice(monkeypatch, settings):
    from mood_journal.utils import llm

    fake = _FakeGroq(type("Resp", (), {"choices": [_Choice("first"), _Choice("second")]})())
    monkeypatch.setattr(llm, "_get_groq_client", lambda s: fake)
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    assert llm.chat_completion(messages, settings=settings) == "first"
    assert fake.kwargs["model"] == settings.groq_model
    assert fake.kwargs["messages"] == messages


def test_groq_wrapper_rejects_empty_choices(monkeypatch, settings):
    from mood_journal.utils import llm

    fake = _FakeGroq(type("Resp", (), {"choices": []})())
    monkeypatch.setattr(llm, "_get_groq_client", lambda s: fake)
    with pytest.raises(RuntimeError):
        llm.chat_completion([], settings=settings)


def test_groq_client_is_reused_per_api_key(monkeypatch, settings):
    import groq
    from mood_journal.utils import llm

    built = []

    class _CountingGroq:
        def __init__(self, api_key):
            built.append(api_key)

    monkeypatch.setattr(groq, "Groq", _CountingGroq)
    llm._groq_client.cache_clear()
    try:
        first = llm._get_groq_client(settings)
        assert llm._get_groq_client(settings) is first
        other = settings.model_copy(update={"groq_api_key": "other-key"})
        assert llm._get_groq_client(other) is not first
        assert built == ["test-key", "other-key"]
    finally:
        llm._groq_client.cache_clear()
