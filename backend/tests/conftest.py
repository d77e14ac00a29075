"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never
touches Docker secrets or a production database.
"""

import os

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite://",
    "ADMIN_API_KEY": "test-admin-key",
    "CORS_ORIGINS": "http://localhost:5173",
})
os.environ.pop("POSTGRES_PASSWORD", None)
os.environ.pop("POSTGRES_PASSWORD_FILE", None)

import pytest

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Now safe to import application code
from models.base import Base, create_tables, get_db
from models.document import Document
from storage.blobs import BlobStore, get_blob_store


_test_engine = create_async_engine("sqlite+aiosqlite://", echo=False)
_TestSession = async_sessionmaker(_test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def _create_tables():
    """Create and drop SQLite tables around every test."""
    await create_tables(_test_engine)
    yield
    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session():
    """Yield a test DB session."""
    async with _TestSession() as session:
        yield session


@pytest.fixture
def blob_store(tmp_path) -> BlobStore:
    """Blob store rooted in a not-yet-created temp directory."""
    return BlobStore(tmp_path / "uploads")


@pytest.fixture
async def test_client(db_session: AsyncSession, blob_store: BlobStore):
    """HTTPX async client wired to the FastAPI app, with DB and blob store overrides.

    The startup event is NOT run, so the blob store is injected directly.
    """
    from main import app

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def make_pdf(size: int) -> bytes:
    """A PDF-looking payload of exactly ``size`` bytes."""
    header = b"%PDF-1.4\n"
    return (header + b"0" * size)[:size]


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf(2048)


@pytest.fixture
def pdf_factory():
    """Callable building PDF payloads of a given size."""
    return make_pdf


@pytest.fixture
def seed_document(db_session: AsyncSession, blob_store: BlobStore):
    """Factory inserting a record (and, by default, its blob) directly."""

    async def _seed(
        filename: str = "seed.pdf",
        data: bytes = b"%PDF-1.4\nseed",
        created_at=None,
        with_blob: bool = True,
    ) -> Document:
        name = blob_store.new_name(filename)
        if with_blob:
            blob_store.promote(blob_store.write_temp(data), name)
        doc = Document(
            filename=filename,
            filepath=blob_store.relative_path(name),
            filesize=len(data),
        )
        if created_at is not None:
            doc.created_at = created_at
        db_session.add(doc)
        await db_session.commit()
        return doc

    return _seed
