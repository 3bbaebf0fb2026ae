from typing import Any, Optional

import httpx

from .models import Book


class BooksApiError(Exception):
    pass


class ApiConnectionError(BooksApiError):
    """The API could not be reached at all."""


class ApiError(BooksApiError):
    def __init__(self, status_code: int, detail: Any, reason: str = ""):
        super().__init__(f"HTTP error! status: {status_code}")
        self.status_code = status_code
        self.detail = detail
        self.reason = reason


class BooksApiClient:
    """Thin httpx wrapper over the BookStore REST API."""

    def __init__(self, base_url: str, http: Optional[httpx.Client] = None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
        return False

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = self._http.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.TransportError as exc:
            raise ApiConnectionError(str(exc)) from exc
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = None
            detail = body.get("detail") if isinstance(body, dict) else resp.text
            raise ApiError(resp.status_code, detail, resp.reason_phrase)
        return resp

    def list_books(self) -> list[Book]:
        resp = self._request("GET", "/api/books")
        return [Book.model_validate(item) for item in resp.json()]

    def get_book(self, book_id: int) -> Book:
        return Book.model_validate(self._request("GET", f"/api/books/{book_id}").json())

    def create_book(self, payload: dict[str, Any]) -> Book:
        body = {**payload, "id": 0}
        return Book.model_validate(self._request("POST", "/api/books", json=body).json())

    def update_book(self, book_id: int, payload: dict[str, Any]) -> Book:
        resp = self._request("PUT", f"/api/books/{book_id}", json={**payload, "id": book_id})
        return Book.model_validate(resp.json())

    def delete_book(self, book_id: int) -> None:
        self._request("DELETE", f"/api/books/{book_id}")

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/api/health").json()
