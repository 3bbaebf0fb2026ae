"""Admin client state.

One ``AdminClient`` models what the admin page keeps in memory between user
actions: the API base URL, the connectivity badge, the loaded books, pending
notifications and the add/edit form. Every network call goes through a fresh
``BooksApiClient`` for the current base URL.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .client import ApiConnectionError, ApiError, BooksApiClient, BooksApiError
from .config import DEFAULT_API_URL
from .models import Book

logger = logging.getLogger(__name__)

FORM_FIELDS = ("title", "author", "year", "genre", "price")

CHECKING = "Checking..."
CONNECTED = "Connected"
NOT_CONNECTED = "Not Connected"


class FormMode(str, Enum):
    CLOSED = "closed"
    CREATE = "create"
    EDIT = "edit"
    SUBMITTING = "submitting"


class FormStateError(RuntimeError):
    pass


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"


@dataclass
class BookForm:
    mode: FormMode = FormMode.CLOSED
    book_id: Optional[int] = None
    values: dict[str, str] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.mode in (FormMode.CREATE, FormMode.EDIT)

    @property
    def title(self) -> str:
        return "Edit Book" if self.book_id is not None else "Add New Book"


def _blank_values() -> dict[str, str]:
    return {name: "" for name in FORM_FIELDS}


def _values_from_book(book: Book) -> dict[str, str]:
    return {
        "title": book.title,
        "author": book.author,
        "year": str(book.year),
        "genre": book.genre or "",
        "price": str(book.price),
    }


class AdminClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        client_factory: Callable[[str], BooksApiClient] = BooksApiClient,
    ):
        self._base_url = base_url.rstrip("/")
        self._client_factory = client_factory
        self.api_status = CHECKING
        self.books: list[Book] = []
        self.is_loading = False
        self.notifications: list[Notification] = []
        self.form = BookForm()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_connected(self) -> bool:
        return self.api_status == CONNECTED

    def set_base_url(self, url: str) -> str:
        """Point the client at another API and re-check connectivity."""
        url = url.strip().rstrip("/")
        if url != self._base_url:
            self._base_url = url
            self.api_status = CHECKING
        return self.check_health()

    def _api(self) -> BooksApiClient:
        return self._client_factory(self._base_url)

    def _status_from_error(self, exc: BooksApiError) -> str:
        if isinstance(exc, ApiError):
            return f"Error: {exc.reason or exc.status_code}"
        return NOT_CONNECTED

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.notifications.append(notification)
        return notification

    def drain_notifications(self) -> list[Notification]:
        pending, self.notifications = self.notifications, []
        return pending

    def check_health(self) -> str:
        try:
            with self._api() as api:
                api.health()
        except BooksApiError as exc:
            self.api_status = self._status_from_error(exc)
        else:
            self.api_status = CONNECTED
        return self.api_status

    def load_books(self) -> list[Book]:
        self.is_loading = True
        try:
            with self._api() as api:
                self.books = api.list_books()
            self.api_status = CONNECTED
        except ApiConnectionError as exc:
            logger.error("Error fetching books: %s", exc)
            self.api_status = NOT_CONNECTED
        except ApiError as exc:
            logger.error("Failed to fetch books: %s", exc.reason)
            self.api_status = self._status_from_error(exc)
        finally:
            self.is_loading = False
        return self.books

    def find_book(self, book_id: int) -> Book:
        for book in self.books:
            if book.id == book_id:
                return book
        raise KeyError(book_id)

    def open_create(self) -> BookForm:
        self._ensure_not_submitting()
        self.form = BookForm(mode=FormMode.CREATE, values=_blank_values())
        return self.form

    def open_edit(self, book_id: int) -> BookForm:
        self._ensure_not_submitting()
        book = self.find_book(book_id)
        self.form = BookForm(mode=FormMode.EDIT, book_id=book.id, values=_values_from_book(book))
        return self.form

    def close_form(self) -> None:
        self._ensure_not_submitting()
        self.form = BookForm()

    def _ensure_not_submitting(self) -> None:
        if self.form.mode is FormMode.SUBMITTING:
            raise FormStateError("a submission is already in progress")

    def _parse_form(self) -> Optional[dict[str, Any]]:
        values = self.form.values
        if any(not str(values.get(name, "")).strip() for name in FORM_FIELDS):
            self.notify("Validation Error", "Please fill in all fields", "destructive")
            return None
        try:
            year = int(values["year"])
            price = float(values["price"])
        except ValueError:
            self.notify("Validation Error", "Year and price must be numbers", "destructive")
            return None
        return {
            "title": values["title"],
            "author": values["author"],
            "year": year,
            "genre": values["genre"],
            "price": price,
        }

    def submit(self, values: Optional[dict[str, Any]] = None) -> Optional[Book]:
        """Send the open form to the API.

        Returns the saved book, or None when the form stays open because of a
        validation or API error (a notification explains which).
        """
        if not self.form.is_open:
            raise FormStateError("the book form is not open")
        if values:
            self.form.values.update({name: str(value) for name, value in values.items() if name in FORM_FIELDS})

        payload = self._parse_form()
        if payload is None:
            return None

        editing = self.form.book_id is not None
        resume_mode = self.form.mode
        self.form.mode = FormMode.SUBMITTING
        try:
            with self._api() as api:
                if editing:
                    api.update_book(self.form.book_id, payload)
                    saved = Book(id=self.form.book_id, **payload)
                else:
                    saved = api.create_book(payload)
        except BooksApiError as exc:
            logger.error("Error saving book: %s", exc)
            self.form.mode = resume_mode
            self.notify(
                "Error saving book",
                "There was an error saving the book. Please try again.",
                "destructive",
            )
            return None

        self._merge(saved)
        action = "updated" if editing else "added"
        self.notify(f"Book {action} successfully", f'"{saved.title}" has been {action} to the library.')
        self.form = BookForm()
        return saved

    def _merge(self, book: Book) -> None:
        for index, existing in enumerate(self.books):
            if existing.id == book.id:
                self.books[index] = book
                return
        self.books.append(book)

    def delete_book(self, book_id: int) -> bool:
        try:
            with self._api() as api:
                api.delete_book(book_id)
        except BooksApiError as exc:
            logger.error("Error deleting book %s: %s", book_id, exc)
            self.notify("Error deleting book", "There was an error deleting the book. Please try again.", "destructive")
            return False

        self.books = [book for book in self.books if book.id != book_id]
        self.notify("Book deleted", f"Book {book_id} has been removed from the library.")
        return True
