import json

import httpx
import pytest

from bookstore.client import ApiConnectionError, ApiError, BooksApiClient

BOOK = {"id": 7, "title": "Dune", "author": "Herbert", "year": 1965, "genre": "SF", "price": 9.99}


def make_client(handler) -> BooksApiClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return BooksApiClient("http://api.test/", http=http)


def test_list_books_parses_rows():
    seen = []

    def handler(request):
        seen.append((request.method, str(request.url)))
        return httpx.Response(200, json=[BOOK])

    books = make_client(handler).list_books()
    assert seen == [("GET", "http://api.test/api/books")]
    assert books[0].title == "Dune"
    assert books[0].id == 7


def test_create_sends_zero_id_and_returns_saved_row():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json=BOOK)

    payload = {key: value for key, value in BOOK.items() if key != "id"}
    saved = make_client(handler).create_book(payload)
    assert bodies == [{**payload, "id": 0}]
    assert saved.id == 7


def test_update_puts_to_book_url_with_id():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=BOOK)

    make_client(handler).update_book(7, {"title": "Dune"})
    assert requests[0].method == "PUT"
    assert requests[0].url.path == "/api/books/7"
    assert json.loads(requests[0].content)["id"] == 7


def test_not_found_raises_api_error_with_detail():
    client = make_client(lambda request: httpx.Response(404, json={"detail": "Book not found"}))
    with pytest.raises(ApiError) as exc:
        client.delete_book(99)
    assert exc.value.status_code == 404
    assert exc.value.detail == "Book not found"
    assert exc.value.reason == "Not Found"


def test_non_json_error_keeps_body_text():
    client = make_client(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(ApiError) as exc:
        client.get_book(1)
    assert exc.value.detail == "bad gateway"


def test_transport_failure_raises_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiConnectionError):
        make_client(handler).health()


def test_injected_http_client_is_not_closed():
    http = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
    with BooksApiClient("http://api.test", http=http) as client:
        client.health()
    assert not http.is_closed
    http.close()
