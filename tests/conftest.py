import os
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Keep the module-level app away from any developer .env database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("LLM_PROVIDER", "groq")

from mood_journal.config import Settings
from mood_journal.database import Database
from mood_journal.services.chat_service import ChatRelay


class FakeCompletion:
    """Stands in for the Groq call; records transcripts and replays a canned reply."""

    def __init__(self, reply="I hear you.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def __call__(self, messages, **kwargs):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        groq_api_key="test-key",
        extension_cache_path=str(tmp_path / "extension" / "tasks.json"),
    )


@pytest.fixture()
def completion():
    return FakeCompletion()


@pytest_asyncio.fixture()
async def database(settings):
    db = Database.from_settings(settings)
    await db.open()
    yield db
    await db.close()


@pytest.fixture()
def app(settings, completion):
    from mood_journal.main import create_app

    return create_app(settings, chat_relay=ChatRelay(completion=completion))


# Fresh database per test; the lifespan opens and closes it
@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
