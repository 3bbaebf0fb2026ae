import logging

from .models import CreateBook
from .repository import BookRepository

logger = logging.getLogger(__name__)

SAMPLE_BOOKS = (
    CreateBook(
        title="Domain-Driven Design",
        author="Eric Evans",
        year=2003,
        genre="Software Engineering",
        price=59.99,
    ),
    CreateBook(
        title="Clean Code",
        author="Robert C. Martin",
        year=2008,
        genre="Software Engineering",
        price=49.99,
    ),
    CreateBook(
        title="The Pragmatic Programmer",
        author="Andrew Hunt, David Thomas",
        year=1999,
        genre="Software Engineering",
        price=39.99,
    ),
    CreateBook(
        title="Design Patterns",
        author="Erich Gamma, Richard Helm, Ralph Johnson, John Vlissides",
        year=1994,
        genre="Software Engineering",
        price=54.99,
    ),
    CreateBook(
        title="Refactoring",
        author="Martin Fowler",
        year=1999,
        genre="Software Engineering",
        price=44.99,
    ),
)


def seed_books(repository: BookRepository) -> int:
    """Insert the sample catalog into an empty store.

    Returns the number of rows written; a store that already holds books is
    left untouched.
    """
    if repository.count():
        logger.info("seed.skip", extra={"backend": repository.name})
        return 0

    for book in SAMPLE_BOOKS:
        repository.create(book)
    logger.info("seed.done", extra={"backend": repository.name, "rows": len(SAMPLE_BOOKS)})
    return len(SAMPLE_BOOKS)
