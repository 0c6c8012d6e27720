"""
Tests for the generic CRUD endpoints.
"""

import pytest
from sqlalchemy.exc import OperationalError

from api.database import BookRepository, Repository


class TestCategoryLifecycle:
    """Create, read, delete and read again."""

    def test_category_scenario(self, client, auth_headers):
        response = client.post("/categories", json={"name": "Fiction"}, headers=auth_headers)
        assert response.status_code == 201
        assert response.json() == {"id": 1, "name": "Fiction"}

        response = client.get("/categories/1")
        assert response.status_code == 200
        assert response.json() == {"id": 1, "name": "Fiction"}

        response = client.delete("/categories/1", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Category deleted successfully"}

        response = client.get("/categories/1")
        assert response.status_code == 404
        assert response.json() == {"message": "Category not found"}


class TestCrudOperations:
    """Test cases shared by every resource."""

    @pytest.mark.parametrize("path, payload", [
        ("/author", {"first_name": "Shel", "last_name": "Silverstein", "biography": "Poet"}),
        ("/publishers", {"name": "Harper", "address": "New York", "contact": "info@harper.test"}),
        ("/user_type", {"title": "manager", "is_admin": False, "is_manager": True, "is_user": False}),
        ("/order_status", {
            "title": "paid", "is_done": False, "is_awaiting_payment": False, "is_paid": True,
            "is_confirmed": False, "is_performed": False, "is_canceled": False,
        }),
    ])
    def test_create_then_get(self, client, auth_headers, path, payload):
        created = client.post(path, json=payload, headers=auth_headers)
        assert created.status_code == 201

        record = created.json()
        assert record == {"id": record["id"], **payload}

        fetched = client.get(f"{path}/{record['id']}", headers=auth_headers)
        assert fetched.status_code == 200
        assert fetched.json() == record

    def test_list_returns_rows_in_id_order(self, client, auth_headers):
        for name in ("Fiction", "Poetry", "Science"):
            client.post("/categories", json={"name": name}, headers=auth_headers)

        response = client.get("/categories")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Fiction", "Poetry", "Science"]

    def test_update_then_get(self, client, auth_headers):
        author = client.post(
            "/author", json={"first_name": "Shel", "last_name": "Silverstein"}, headers=auth_headers
        ).json()

        response = client.put(
            f"/author/{author['id']}",
            json={"first_name": "Sheldon", "last_name": "Silverstein", "biography": "Poet"},
            headers=auth_headers,
        )
        assert response.status_code == 200

        fetched = client.get(f"/author/{author['id']}").json()
        assert fetched == {
            "id": author["id"], "first_name": "Sheldon", "last_name": "Silverstein", "biography": "Poet"
        }

    def test_update_missing_record(self, client, auth_headers):
        response = client.put("/categories/99", json={"name": "Fiction"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"message": "Category not found"}

    def test_delete_missing_record(self, client, auth_headers):
        response = client.delete("/publishers/99", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"message": "Publisher not found"}

    def test_get_missing_record(self, client):
        assert client.get("/author/99").status_code == 404

    def test_non_integer_id(self, client):
        response = client.get("/author/abc")

        assert response.status_code == 400
        assert response.json()["errors"][0]["location"] == "path"

    def test_unknown_route(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert "message" in response.json()


class TestValidation:
    """Request bodies are checked before any store access."""

    def test_missing_required_fields(self, client, auth_headers):
        response = client.post("/book", json={"title": "Untitled"}, headers=auth_headers)

        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert fields == {"description", "price", "published_at", "stock"}

    def test_wrong_types(self, client, auth_headers, sample_book_payload):
        payload = {**sample_book_payload, "price": "cheap", "stock": 1.5, "published_at": "yesterday"}

        response = client.post("/book", json=payload, headers=auth_headers)

        assert response.status_code == 400
        errors = {error["field"]: error for error in response.json()["errors"]}
        assert set(errors) == {"price", "stock", "published_at"}
        assert errors["price"]["location"] == "body"
        assert errors["price"]["value"] == "cheap"

    def test_empty_required_string(self, client, auth_headers):
        response = client.post("/categories", json={"name": ""}, headers=auth_headers)
        assert response.status_code == 400

    def test_invalid_boolean(self, client, auth_headers):
        response = client.post(
            "/crm_email", json={"email": "a@b.test", "is_main": "sometimes", "crm_card_id": 1},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "is_main"

    def test_invalid_update_leaves_record_untouched(self, client, auth_headers):
        client.post("/categories", json={"name": "Fiction"}, headers=auth_headers)

        response = client.put("/categories/1", json={"name": ""}, headers=auth_headers)
        assert response.status_code == 400
        assert client.get("/categories/1").json()["name"] == "Fiction"


class TestConstraints:
    """Store-enforced invariants surface as conflicts."""

    def test_dangling_foreign_key(self, client, auth_headers, sample_book_payload):
        payload = {**sample_book_payload, "author_id": 999}

        response = client.post("/book", json=payload, headers=auth_headers)

        assert response.status_code == 409
        assert "FOREIGN KEY" in response.json()["message"]

    def test_deleting_referenced_row(self, seeded_client, auth_headers):
        user = seeded_client.post("/auth/signup", json={"login": "buyer", "password": "secret"}).json()["user"]
        order = {"total_amount": 10.0, "order_status_id": 1, "order_date": "2024-05-01T10:00:00", "user_id": user["id"]}
        assert seeded_client.post("/order", json=order, headers=auth_headers).status_code == 201

        response = seeded_client.delete("/order_status/1", headers=auth_headers)

        assert response.status_code == 409
        assert seeded_client.get("/order_status/1", headers=auth_headers).status_code == 200

    def test_deleting_author_clears_book_reference(self, client, auth_headers, sample_book_payload):
        author = client.post(
            "/author", json={"first_name": "Shel", "last_name": "Silverstein"}, headers=auth_headers
        ).json()
        book = client.post(
            "/book", json={**sample_book_payload, "author_id": author["id"]}, headers=auth_headers
        ).json()
        assert book["author"]["id"] == author["id"]

        assert client.delete(f"/author/{author['id']}", headers=auth_headers).status_code == 200

        book = client.get(f"/book/{book['id']}").json()
        assert book["author_id"] is None
        assert book["author"] is None


class TestCrmCard:
    """CRM card updates only touch the fields sent."""

    def test_partial_update(self, seeded_client, auth_headers):
        signup = seeded_client.post("/auth/signup", json={"login": "reader", "password": "secret"}).json()
        card_id = signup["user_crm"]["id"]

        response = seeded_client.put(
            f"/crm_card/{card_id}",
            json={"user_name": "Ada", "active": True, "birthday": "1990-12-10T00:00:00"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        card = seeded_client.get(f"/crm_card/{card_id}", headers=auth_headers).json()
        assert card["user_name"] == "Ada"
        assert card["active"] is True
        assert card["birthday"] == "1990-12-10T00:00:00"
        assert card["user_id"] == signup["user"]["id"]

    @pytest.mark.parametrize("field", ["user_id", "user_type_id", "active"])
    def test_update_rejects_null_for_required_columns(self, seeded_client, auth_headers, field):
        card_id = seeded_client.post(
            "/auth/signup", json={"login": "reader", "password": "secret"}
        ).json()["user_crm"]["id"]

        response = seeded_client.put(
            f"/crm_card/{card_id}", json={"user_name": "Ada", field: None}, headers=auth_headers
        )

        assert response.status_code == 400
        assert [error["field"] for error in response.json()["errors"]] == [field]
        assert seeded_client.get(f"/crm_card/{card_id}", headers=auth_headers).json()["user_name"] is None

    def test_update_allows_clearing_optional_columns(self, seeded_client, auth_headers):
        card_id = seeded_client.post(
            "/auth/signup", json={"login": "reader", "password": "secret"}
        ).json()["user_crm"]["id"]
        seeded_client.put(f"/crm_card/{card_id}", json={"user_name": "Ada"}, headers=auth_headers)

        response = seeded_client.put(f"/crm_card/{card_id}", json={"user_name": None}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user_name"] is None

    def test_card_embeds_user_type(self, seeded_client, auth_headers):
        card_id = seeded_client.post(
            "/auth/signup", json={"login": "reader", "password": "secret"}
        ).json()["user_crm"]["id"]

        card = seeded_client.get(f"/crm_card/{card_id}", headers=auth_headers).json()
        listed = seeded_client.get("/crm_card", headers=auth_headers).json()

        assert card["user_type"]["title"] == "user"
        assert card["user_type"]["is_user"] is True
        assert listed == [card]

    def test_crm_children(self, seeded_client, auth_headers):
        card_id = seeded_client.post(
            "/auth/signup", json={"login": "reader", "password": "secret"}
        ).json()["user_crm"]["id"]

        email = seeded_client.post(
            "/crm_email", json={"email": "ada@example.test", "is_main": True, "crm_card_id": card_id},
            headers=auth_headers,
        )
        address = seeded_client.post(
            "/crm_address",
            json={"country": "UK", "city": "London", "street": "Baker", "house": "221b",
                  "apartment": "1", "crm_card_id": card_id},
            headers=auth_headers,
        )
        payment = seeded_client.post(
            "/crm_payment_card",
            json={"card_title": "ADA L", "card_number": "4111111111111111",
                  "date_end": "2030-01-01T00:00:00", "crm_card_id": card_id},
            headers=auth_headers,
        )

        assert email.status_code == 201
        assert address.status_code == 201
        assert payment.status_code == 201
        assert payment.json()["date_end"] == "2030-01-01T00:00:00"


class TestUserResource:
    """Users are exposed read/delete only and never with a password."""

    def test_users_never_expose_password(self, seeded_client, auth_headers):
        user = seeded_client.post("/auth/signup", json={"login": "reader", "password": "secret"}).json()["user"]

        listed = seeded_client.get("/user", headers=auth_headers).json()
        fetched = seeded_client.get(f"/user/{user['id']}", headers=auth_headers).json()

        assert listed == [user]
        assert fetched == {"id": user["id"], "login": "reader"}

    def test_users_cannot_be_created_directly(self, client, auth_headers):
        response = client.post("/user", json={"login": "x", "password": "y"}, headers=auth_headers)
        assert response.status_code == 405


class TestOrders:
    """Orders and order items reference users, statuses and books."""

    def test_order_with_items(self, seeded_client, auth_headers, sample_book_payload):
        user = seeded_client.post("/auth/signup", json={"login": "buyer", "password": "secret"}).json()["user"]
        book = seeded_client.post("/book", json=sample_book_payload, headers=auth_headers).json()
        order = seeded_client.post(
            "/order",
            json={"total_amount": 39.98, "order_status_id": 1, "order_date": "2024-05-01T10:00:00",
                  "user_id": user["id"]},
            headers=auth_headers,
        ).json()

        response = seeded_client.post(
            "/order_item",
            json={"quantity": 2, "price": 19.99, "order_id": order["id"], "book_id": book["id"]},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json() == {
            "id": 1, "quantity": 2, "price": 19.99, "order_id": order["id"], "book_id": book["id"]
        }
        # stock is not touched by ordering
        assert seeded_client.get(f"/book/{book['id']}").json()["stock"] == sample_book_payload["stock"]


class TestStoreFailures:
    """Store errors other than constraint violations surface as 500."""

    @pytest.fixture
    def broken_store(self, monkeypatch):
        error = OperationalError("SELECT author.id FROM author", {}, Exception("disk I/O error"))

        async def fail(*args, **kwargs):
            raise error

        for method in ("find_all", "find_by_id", "create", "update", "delete"):
            monkeypatch.setattr(Repository, method, fail)
        return error

    def test_list_failure(self, client, broken_store):
        response = client.get("/author")

        assert response.status_code == 500
        assert response.json() == {"message": str(broken_store)}
        assert "disk I/O error" in response.json()["message"]

    @pytest.mark.parametrize("method, path, body", [
        ("GET", "/author/1", None),
        ("POST", "/author", {"first_name": "Shel", "last_name": "Silverstein"}),
        ("PUT", "/author/1", {"first_name": "Shel", "last_name": "Silverstein"}),
        ("DELETE", "/author/1", None),
    ])
    def test_write_and_read_failures(self, client, auth_headers, broken_store, method, path, body):
        response = client.request(method, path, json=body, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"message": str(broken_store)}

    def test_filter_failure(self, client, monkeypatch):
        error = OperationalError("SELECT book.id FROM book", {}, Exception("database is locked"))

        async def fail(*args, **kwargs):
            raise error

        monkeypatch.setattr(BookRepository, "find_filtered", fail)

        response = client.get("/book/filters", params={"min_price": 1})

        assert response.status_code == 500
        assert response.json() == {"message": str(error)}
