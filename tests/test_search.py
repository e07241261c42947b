"""Test search, the home page and store failure handling."""
import asyncio

from sqlalchemy.exc import OperationalError

from core.database import Database
from verticals.catalog.repository import AuthorRepository, BookInstanceRepository


def test_search_api_on_empty_store(client):
    for method in (client.get, client.post):
        response = method("/catalog/api/search")
        assert response.status_code == 200
        assert response.json() == {"books": [], "authors": []}


def test_search_api_inlines_virtual_fields(client, make_author, make_genre, make_book):
    author_id = make_author("Jane", "Austen", date_of_birth="1775-12-16", date_of_death="1817-07-18")
    genre_id = make_genre("Romance")
    book_id = make_book(author_id, title="Emma", genres=[genre_id])

    payload = client.get("/catalog/api/search").json()

    [author] = payload["authors"]
    assert author["id"] == author_id
    assert author["name"] == "Austen, Jane"
    assert author["url"] == f"/catalog/authors/{author_id}"
    assert author["lifespan"] == "Dec 16, 1775 - Jul 18, 1817"
    assert author["date_of_birth"] == "1775-12-16"
    assert author["date_of_birth_formatted"] == "Dec 16, 1775"
    assert author["date_of_death_formatted"] == "Jul 18, 1817"
    assert author["date_of_birth_yyyy_mm_dd"] == "1775-12-16"
    assert author["date_of_death_yyyy_mm_dd"] == "1817-07-18"

    [book] = payload["books"]
    assert book["id"] == book_id
    assert book["author"] == author_id
    assert book["genre"] == [genre_id]
    assert book["url"] == f"/catalog/books/{book_id}"


def test_search_page_reserves_result_slots(client, make_author, make_book):
    make_book(make_author())
    response = client.get("/catalog/search", params={"search_input": "emma"})

    assert response.status_code == 200
    assert response.context["search"] == "emma"
    assert len(response.context["books"]) == 1
    assert len(response.context["authors"]) == 1
    assert response.context["books_result"] == []
    assert response.context["authors_result"] == []


def test_store_failure_on_json_search(client, monkeypatch):
    async def broken(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is gone"))

    monkeypatch.setattr(AuthorRepository, "list", broken)
    response = client.get("/catalog/api/search")
    assert response.status_code == 500
    assert response.json() == {"message": "Error fetching data"}


def test_store_failure_on_page_renders_error(client, monkeypatch):
    async def broken(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is gone"))

    monkeypatch.setattr(AuthorRepository, "list", broken)
    response = client.get("/catalog/authors")
    assert response.status_code == 500
    assert response.template.name == "error.html"


def test_index_counts(client, config, make_author, make_genre, make_book):
    book_id = make_book(make_author(), genres=[make_genre("Poetry")])

    async def add_copies():
        database = Database(config.database)
        instances = BookInstanceRepository(database)
        await instances.create({"book_id": book_id, "imprint": "Penguin", "status": "Available"})
        await instances.create({"book_id": book_id, "imprint": "Penguin", "status": "Loaned"})
        await database.dispose()

    asyncio.run(add_copies())

    data = client.get("/catalog/").context["data"]
    assert data == {
        "book_count": 1,
        "book_instance_count": 2,
        "book_instance_available_count": 1,
        "author_count": 1,
        "genre_count": 1,
    }


def test_book_instance_pages(client, config, make_author, make_book):
    book_id = make_book(make_author(), title="Emma")

    async def add_copy():
        database = Database(config.database)
        copy = await BookInstanceRepository(database).create({"book_id": book_id, "imprint": "Penguin"})
        await database.dispose()
        return copy

    copy = asyncio.run(add_copy())

    listing = client.get("/catalog/bookinstances").context["bookinstance_list"]
    assert [c["id"] for c in listing] == [copy["id"]]

    detail = client.get(f"/catalog/bookinstances/{copy['id']}").context["bookinstance"]
    assert detail["status"] == "Maintenance"
    assert detail["book"]["title"] == "Emma"

    book = client.get(f"/catalog/books/{book_id}").context
    assert [c["id"] for c in book["book_instances"]] == [copy["id"]]

    assert client.get("/catalog/bookinstances/missing").status_code == 404


def test_health_and_root(client):
    assert client.get("/health").json()["status"] == "healthy"
    response = client.get("/", follow_redirects=False)
    assert response.headers["location"] == "/catalog/"
    assert "X-Request-ID" in response.headers
