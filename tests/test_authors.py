"""Test the author workflow over HTTP."""
import os

from sqlalchemy.exc import OperationalError

from verticals.catalog.repository import AuthorRepository

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def test_create_redirects_to_detail(client, make_author):
    author_id = make_author("Jane", "Austen", date_of_birth="1775-12-16")

    response = client.get(f"/catalog/authors/{author_id}")
    assert response.status_code == 200
    assert response.context["author"]["name"] == "Austen, Jane"
    assert response.context["author_books"] == []


def test_create_stores_relative_image_path(client, config, make_author):
    author_id = make_author()
    author = client.get(f"/catalog/authors/{author_id}").context["author"]

    assert author["image_path"].startswith("/images/")
    stored = os.path.join(config.uploads.directory, author["image_path"].rsplit("/", 1)[-1])
    with open(stored, "rb") as fh:
        assert fh.read() == PNG
    assert client.get(author["image_path"]).content == PNG


def test_create_without_file_is_client_error(client):
    response = client.post(
        "/catalog/authors/create",
        data={"first_name": "Jane", "family_name": "Austen"},
        follow_redirects=False,
    )
    assert response.status_code == 400
    assert "No files were uploaded." in response.text
    assert client.get("/catalog/authors").context["author_list"] == []


def test_invalid_first_name_rerenders_with_raw_input(client):
    response = client.post(
        "/catalog/authors/create",
        data={"first_name": "Jo<hn", "family_name": "Smith"},
        files={"upload_file": ("p.png", PNG, "image/png")},
        follow_redirects=False,
    )
    assert response.status_code == 200
    assert response.template.name == "author_form.html"
    assert response.context["author"]["first_name"] == "Jo<hn"
    assert [e.field for e in response.context["errors"]] == ["first_name"]
    assert "non-alphanumeric" in response.context["errors"][0].message
    assert client.get("/catalog/authors").context["author_list"] == []


def test_list_sorted_by_family_name(client, make_author):
    make_author("J", "Tolkien")
    make_author("Jane", "Austen")
    make_author("George", "Martin")

    authors = client.get("/catalog/authors").context["author_list"]
    assert [a["family_name"] for a in authors] == ["Austen", "Martin", "Tolkien"]


def test_detail_missing_is_404(client):
    response = client.get("/catalog/authors/does-not-exist")
    assert response.status_code == 404
    assert response.context["message"] == "Author not found"


def test_update_keeps_identity(client, make_author):
    author_id = make_author("Jane", "Austen")

    form = client.get(f"/catalog/authors/{author_id}/update")
    assert form.context["author"]["first_name"] == "Jane"

    response = client.post(
        f"/catalog/authors/{author_id}/update",
        data={"first_name": "Janet", "family_name": "Austin", "date_of_death": "1817-07-18"},
        files={"upload_file": ("new.png", PNG, "image/png")},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == f"/catalog/authors/{author_id}"

    author = client.get(f"/catalog/authors/{author_id}").context["author"]
    assert author["id"] == author_id
    assert author["name"] == "Austin, Janet"
    assert author["date_of_death"] == "1817-07-18"
    assert len(client.get("/catalog/authors").context["author_list"]) == 1


def test_update_invalid_keeps_original_identity_in_form(client, make_author):
    author_id = make_author()
    response = client.post(
        f"/catalog/authors/{author_id}/update",
        data={"first_name": "", "family_name": "Austen"},
        files={"upload_file": ("new.png", PNG, "image/png")},
    )
    assert response.status_code == 200
    assert response.context["author"]["id"] == author_id
    assert "first_name" in {e.field for e in response.context["errors"]}


def test_update_missing_is_404(client):
    assert client.get("/catalog/authors/nope/update").status_code == 404


def test_delete_blocked_by_books(client, make_author, make_book):
    author_id = make_author()
    book_id = make_book(author_id, title="Emma")

    response = client.post(
        f"/catalog/authors/{author_id}/delete",
        data={"authorid": author_id},
        follow_redirects=False,
    )
    assert response.status_code == 200
    assert response.template.name == "author_delete.html"
    assert [b["id"] for b in response.context["author_books"]] == [book_id]
    assert client.get(f"/catalog/authors/{author_id}").status_code == 200


def test_delete_without_books_removes_author(client, make_author):
    author_id = make_author()

    confirm = client.get(f"/catalog/authors/{author_id}/delete")
    assert confirm.context["author_books"] == []

    response = client.post(
        f"/catalog/authors/{author_id}/delete",
        data={"authorid": author_id},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/catalog/authors"
    assert client.get(f"/catalog/authors/{author_id}").status_code == 404


def test_delete_with_mismatched_body_identity_is_rejected(client, make_author):
    author_id = make_author("Jane", "Austen")
    other_id = make_author("Mary", "Shelley")

    response = client.post(
        f"/catalog/authors/{author_id}/delete",
        data={"authorid": other_id},
        follow_redirects=False,
    )
    assert response.status_code == 400
    assert client.get(f"/catalog/authors/{author_id}").status_code == 200
    assert client.get(f"/catalog/authors/{other_id}").status_code == 200


def test_delete_form_for_missing_author_redirects_to_list(client):
    response = client.get("/catalog/authors/missing/delete", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/catalog/authors"


def test_unsafe_filename_is_stored_under_an_addressable_path(client, config):
    response = client.post(
        "/catalog/authors/create",
        data={"first_name": "Jane", "family_name": "Austen"},
        files={"upload_file": ("my#pic?.png", PNG, "image/png")},
        follow_redirects=False,
    )
    author_id = response.headers["location"].rsplit("/", 1)[-1]
    image_path = client.get(f"/catalog/authors/{author_id}").context["author"]["image_path"]

    assert image_path.endswith("_my_pic_.png")
    assert client.get(image_path).content == PNG


def test_update_replaces_previous_image(client, config, make_author):
    author_id = make_author()
    old_path = client.get(f"/catalog/authors/{author_id}").context["author"]["image_path"]

    client.post(
        f"/catalog/authors/{author_id}/update",
        data={"first_name": "Jane", "family_name": "Austen"},
        files={"upload_file": ("new.png", PNG, "image/png")},
        follow_redirects=False,
    )
    new_path = client.get(f"/catalog/authors/{author_id}").context["author"]["image_path"]

    assert new_path != old_path
    assert os.listdir(config.uploads.directory) == [new_path.rsplit("/", 1)[-1]]


def test_store_failure_on_create_removes_saved_image(client, config, monkeypatch):
    async def broken(self, *args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is gone"))

    monkeypatch.setattr(AuthorRepository, "create", broken)
    response = client.post(
        "/catalog/authors/create",
        data={"first_name": "Jane", "family_name": "Austen"},
        files={"upload_file": ("portrait.png", PNG, "image/png")},
        follow_redirects=False,
    )
    assert response.status_code == 500
    assert os.listdir(config.uploads.directory) == []
