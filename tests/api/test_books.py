"""
Tests for the book endpoints and the filtered listing.
"""

import pytest


@pytest.fixture
def catalogue(client, auth_headers, sample_book_payload):
    """Two authors, categories and publishers with four books spread across them."""

    def create(path, payload):
        response = client.post(path, json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["id"]

    authors = [
        create("/author", {"first_name": "Shel", "last_name": "Silverstein"}),
        create("/author", {"first_name": "Roald", "last_name": "Dahl"}),
    ]
    categories = [create("/categories", {"name": "Poetry"}), create("/categories", {"name": "Fiction"})]
    publishers = [
        create("/publishers", {"name": "Harper", "address": "New York", "contact": "harper.test"}),
        create("/publishers", {"name": "Puffin", "address": "London", "contact": "puffin.test"}),
    ]

    books = [
        ("A Light in the Attic", 10.0, 0, 0, 0),
        ("Where the Sidewalk Ends", 20.0, 0, 0, 1),
        ("Matilda", 30.0, 1, 1, 1),
        ("The BFG", 40.0, 1, 1, 0),
    ]
    book_ids = [
        create("/book", {
            **sample_book_payload,
            "title": title,
            "price": price,
            "author_id": authors[author],
            "category_id": categories[category],
            "publisher_id": publishers[publisher],
        })
        for title, price, author, category, publisher in books
    ]

    return {"authors": authors, "categories": categories, "publishers": publishers, "books": book_ids}


def titles(response):
    return [book["title"] for book in response.json()]


class TestBookFilters:
    """Test cases for GET /book/filters."""

    def test_no_filters_returns_everything(self, client, catalogue):
        response = client.get("/book/filters")

        assert response.status_code == 200
        assert titles(response) == ["A Light in the Attic", "Where the Sidewalk Ends", "Matilda", "The BFG"]

    def test_price_bounds_are_inclusive(self, client, catalogue):
        response = client.get("/book/filters", params={"min_price": 20, "max_price": 30})

        assert response.status_code == 200
        assert titles(response) == ["Where the Sidewalk Ends", "Matilda"]

    def test_min_price_only(self, client, catalogue):
        response = client.get("/book/filters", params={"min_price": 30})
        assert titles(response) == ["Matilda", "The BFG"]

    def test_max_price_only(self, client, catalogue):
        response = client.get("/book/filters", params={"max_price": 10})
        assert titles(response) == ["A Light in the Attic"]

    def test_zero_bound_is_applied(self, client, catalogue):
        response = client.get("/book/filters", params={"max_price": 0})
        assert response.json() == []

    def test_author_filter(self, client, catalogue):
        response = client.get("/book/filters", params={"author_id": catalogue["authors"][1]})

        assert titles(response) == ["Matilda", "The BFG"]
        assert all(book["author"]["last_name"] == "Dahl" for book in response.json())

    def test_category_filter(self, client, catalogue):
        response = client.get("/book/filters", params={"category_id": catalogue["categories"][0]})
        assert titles(response) == ["A Light in the Attic", "Where the Sidewalk Ends"]

    def test_publisher_filter(self, client, catalogue):
        response = client.get("/book/filters", params={"publisher_id": catalogue["publishers"][1]})
        assert titles(response) == ["Where the Sidewalk Ends", "Matilda"]

    def test_filters_combine(self, client, catalogue):
        response = client.get("/book/filters", params={
            "author_id": catalogue["authors"][0],
            "publisher_id": catalogue["publishers"][1],
            "min_price": 15,
        })
        assert titles(response) == ["Where the Sidewalk Ends"]

    def test_unknown_reference_matches_nothing(self, client, catalogue):
        response = client.get("/book/filters", params={"author_id": 999})

        assert response.status_code == 200
        assert response.json() == []

    def test_invalid_query_parameter(self, client):
        response = client.get("/book/filters", params={"min_price": "abc"})

        assert response.status_code == 400
        error = response.json()["errors"][0]
        assert error["field"] == "min_price"
        assert error["location"] == "query"


class TestBookRecords:
    """Test cases for the book CRUD endpoints."""

    def test_get_book_embeds_relations(self, client, catalogue):
        response = client.get(f"/book/{catalogue['books'][2]}")

        assert response.status_code == 200
        book = response.json()
        assert book["title"] == "Matilda"
        assert book["author"] == {
            "id": catalogue["authors"][1], "first_name": "Roald", "last_name": "Dahl", "biography": None
        }
        assert book["category"]["name"] == "Fiction"
        assert book["publisher"]["name"] == "Puffin"

    def test_list_books_embeds_relations(self, client, catalogue):
        response = client.get("/book")

        assert response.status_code == 200
        assert [book["author"]["first_name"] for book in response.json()] == ["Shel", "Shel", "Roald", "Roald"]

    def test_book_without_relations(self, client, auth_headers, sample_book_payload):
        response = client.post("/book", json=sample_book_payload, headers=auth_headers)

        assert response.status_code == 201
        book = response.json()
        assert book["author"] is None
        assert book["category"] is None
        assert book["publisher"] is None
        assert book["published_at"] == "2024-05-01T00:00:00"

    def test_update_book_price(self, client, auth_headers, catalogue, sample_book_payload):
        book_id = catalogue["books"][0]

        response = client.put(
            f"/book/{book_id}", json={**sample_book_payload, "price": 12.5}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["price"] == 12.5
        assert titles(client.get("/book/filters", params={"min_price": 12.5, "max_price": 12.5})) == [
            sample_book_payload["title"]
        ]

    def test_delete_book(self, client, auth_headers, catalogue):
        book_id = catalogue["books"][3]

        response = client.delete(f"/book/{book_id}", headers=auth_headers)

        assert response.json() == {"message": "Book deleted successfully"}
        assert client.get(f"/book/{book_id}").status_code == 404
        assert len(client.get("/book").json()) == 3
