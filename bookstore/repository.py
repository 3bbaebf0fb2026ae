import itertools
import threading
from typing import Protocol

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .entities import BookRecord
from .models import Book, BookFields


class StoreUnavailableError(RuntimeError):
    pass


class BookRepository(Protocol):
    """Persistence gateway over Book rows.

    Lookups of an unknown id raise ``KeyError(book_id)``.
    """

    name: str

    def list(self) -> list[Book]: ...

    def get(self, book_id: int) -> Book: ...

    def create(self, payload: BookFields) -> Book: ...

    def update(self, book_id: int, payload: BookFields) -> Book: ...

    def delete(self, book_id: int) -> None: ...

    def count(self) -> int: ...

    def ping(self) -> None: ...


def _values(payload: BookFields) -> dict:
    return payload.model_dump(include=set(BookFields.model_fields))


class SqlBookRepository:
    name = "sql"

    def __init__(self, session: Session):
        self.session = session

    def list(self) -> list[Book]:
        records = self.session.execute(select(BookRecord).order_by(BookRecord.id)).scalars().all()
        return [self._to_schema(record) for record in records]

    def create(self, payload: BookFields) -> Book:
        record = BookRecord(**_values(payload))
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return self._to_schema(record)

    def get(self, book_id: int) -> Book:
        record = self.session.get(BookRecord, book_id)
        if record is None:
            raise KeyError(book_id)
        return self._to_schema(record)

    def update(self, book_id: int, payload: BookFields) -> Book:
        record = self.session.get(BookRecord, book_id)
        if record is None:
            raise KeyError(book_id)

        for field, value in _values(payload).items():
            setattr(record, field, value)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return self._to_schema(record)

    def delete(self, book_id: int) -> None:
        record = self.session.get(BookRecord, book_id)
        if record is None:
            raise KeyError(book_id)
        self.session.delete(record)
        self.session.commit()

    def count(self) -> int:
        return self.session.execute(select(func.count()).select_from(BookRecord)).scalar_one()

    def ping(self) -> None:
        try:
            self.session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreUnavailableError(str(exc)) from exc

    @staticmethod
    def _to_schema(record: BookRecord) -> Book:
        return Book.model_validate(record, from_attributes=True)


class InMemoryBookRepository:
    """Process-local store used when no database is configured."""

    name = "memory"

    def __init__(self):
        self._rows: dict[int, Book] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def list(self) -> list[Book]:
        with self._lock:
            return [self._rows[book_id].model_copy() for book_id in sorted(self._rows)]

    def create(self, payload: BookFields) -> Book:
        with self._lock:
            book = Book(id=next(self._ids), **_values(payload))
            self._rows[book.id] = book
            return book.model_copy()

    def get(self, book_id: int) -> Book:
        with self._lock:
            return self._rows[book_id].model_copy()

    def update(self, book_id: int, payload: BookFields) -> Book:
        with self._lock:
            if book_id not in self._rows:
                raise KeyError(book_id)
            book = Book(id=book_id, **_values(payload))
            self._rows[book_id] = book
            return book.model_copy()

    def delete(self, book_id: int) -> None:
        with self._lock:
            del self._rows[book_id]

    def count(self) -> int:
        with self._lock:
            return len(self._rows)

    def ping(self) -> None:
        return None
