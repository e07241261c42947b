"""Shared fixtures: an app on a throwaway SQLite file plus entity factories."""
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

import verticals.catalog.models.db_models  # noqa: F401
from api.main import create_app
from core.database import Database
from patterns.domain_config import CatalogConfig, DatabaseConfig, UploadConfig

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def config(tmp_path):
    return CatalogConfig(
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"),
        uploads=UploadConfig(directory=str(tmp_path / "images")),
    )


@pytest.fixture
def client(config):
    app = create_app(config)
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def database(config):
    db = Database(config.database)
    await db.create_all()
    yield db
    await db.dispose()


def _id_from(response) -> str:
    assert response.status_code == 303, response.text
    return response.headers["location"].rstrip("/").rsplit("/", 1)[-1]


@pytest.fixture
def make_author(client):
    def _make(first_name="Jane", family_name="Austen", **fields) -> str:
        data = {"first_name": first_name, "family_name": family_name, **fields}
        response = client.post(
            "/catalog/authors/create",
            data=data,
            files={"upload_file": ("portrait.png", PNG, "image/png")},
            follow_redirects=False,
        )
        return _id_from(response)
    return _make


@pytest.fixture
def make_genre(client):
    def _make(name="Fantasy") -> str:
        response = client.post(
            "/catalog/genres/create", data={"name": name}, follow_redirects=False
        )
        return _id_from(response)
    return _make


@pytest.fixture
def make_book(client):
    def _make(author_id, title="Emma", genres=None, **fields) -> str:
        data = {
            "title": title,
            "author": author_id,
            "summary": fields.pop("summary", "A novel."),
            "isbn": fields.pop("isbn", "9780141439587"),
            **fields,
        }
        if genres is not None:
            data["genre"] = genres
        response = client.post("/catalog/books/create", data=data, follow_redirects=False)
        return _id_from(response)
    return _make
