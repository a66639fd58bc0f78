import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from redirections.api.deps import get_identity_provider, get_store
from redirections.core.rate_limit import limiter
from redirections.db.memory_store import InMemoryRecordStore
from redirections.db.models import ContentType, RedirectRecord, utcnow
from redirections.db.session import create_store_engine
from redirections.db.sql_store import SQLRecordStore
from redirections.main import app
from redirections.services.identity import IdentityProvider, Principal


def make_record(slug: str = "launch", url: str = "https://example.com/a", **overrides) -> RedirectRecord:
    """Build a record the way the admin service would store it."""
    now = utcnow()
    values = dict(
        slug=slug,
        url=url,
        title="Launch day",
        description="Everything shipping this week",
        image_url="https://example.com/og.png",
        keywords="launch, release,news",
        site_name="thisisio",
        content_type=ContentType.article,
        canonical_url=url,
        author="thisisio",
        created_at=now,
        updated_at=now,
        published_time=now,
        clicks=0,
    )
    values.update(overrides)
    return RedirectRecord(**values)


@pytest.fixture
def launch_record():
    return make_record()


@pytest.fixture
def memory_store(launch_record):
    return InMemoryRecordStore([launch_record])


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    """SQLite-backed store on a fresh file per test."""
    engine = create_store_engine(f"sqlite+aiosqlite:///{tmp_path / 'redirections.db'}")
    store = SQLRecordStore(engine)
    await store.create_tables()
    yield store
    await store.close()


@pytest.fixture
def identity():
    return IdentityProvider(username="admin", password="s3cret", secret_key="test-secret")


@pytest.fixture
def admin_headers(identity):
    token = identity.issue_token(Principal(username="admin"))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(memory_store, identity):
    """Test client wired to the in-memory store, with rate limiting off."""
    limiter.enabled = False
    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_identity_provider] = lambda: identity
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.enabled = True
