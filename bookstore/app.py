import logging
import uuid
from collections.abc import Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import List

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import OperationalError

from .config import get_settings
from .db import init_db, session_scope
from .models import Book, CreateBook, HealthCheck, HealthReport, UpdateBook
from .otel import configure_logging, configure_otel
from .repository import BookRepository, InMemoryBookRepository, SqlBookRepository, StoreUnavailableError
from .seed import seed_books

settings = get_settings()
logger = logging.getLogger("bookstore.api")
request_logger = logging.getLogger("bookstore.requests")

memory_repository = InMemoryBookRepository()

BOOK_NOT_FOUND = "Book not found"
# ids are stored in a signed 32-bit INTEGER column
MAX_BOOK_ID = 2**31 - 1


@contextmanager
def open_repository() -> Iterator[BookRepository]:
    if settings.storage_backend == "memory":
        yield memory_repository
        return
    with session_scope() as session:
        yield SqlBookRepository(session)


def get_book_repository() -> Iterator[BookRepository]:
    with open_repository() as repository:
        yield repository


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    if settings.storage_backend == "sql":
        init_db()
    if settings.seed_on_startup:
        with open_repository() as repository:
            seed_books(repository)
    logger.info("startup.complete", extra={"backend": settings.storage_backend})
    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="A simple bookstore catalog API with an admin client.",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)
if settings.otel_enabled:
    configure_otel(app, settings)

if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )


def book_id_param(book_id: int) -> int:
    if not 1 <= book_id <= MAX_BOOK_ID:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOK_NOT_FOUND)
    return book_id


def list_books(repository: BookRepository = Depends(get_book_repository)) -> List[Book]:
    return repository.list()


def get_book(book_id: int = Depends(book_id_param), repository: BookRepository = Depends(get_book_repository)) -> Book:
    try:
        return repository.get(book_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOK_NOT_FOUND) from exc


def create_book(payload: CreateBook, repository: BookRepository = Depends(get_book_repository)) -> Book:
    book = repository.create(payload)
    logger.info("book.created", extra={"book_id": book.id})
    return book


def update_book(
    payload: UpdateBook,
    book_id: int = Depends(book_id_param),
    repository: BookRepository = Depends(get_book_repository),
) -> Book:
    if payload.id is not None and payload.id != book_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Book id does not match the URL")
    try:
        return repository.update(book_id, payload)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOK_NOT_FOUND) from exc


def delete_book(book_id: int = Depends(book_id_param), repository: BookRepository = Depends(get_book_repository)) -> Response:
    try:
        repository.delete(book_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOK_NOT_FOUND) from exc
    logger.info("book.deleted", extra={"book_id": book_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def health(repository: BookRepository = Depends(get_book_repository)) -> JSONResponse:
    try:
        repository.ping()
    except StoreUnavailableError as exc:
        logger.warning("health.store_unreachable: %s", exc)
        check = HealthCheck(name="store", status="Unhealthy", description=f"{repository.name} store unreachable")
    else:
        check = HealthCheck(name="store", status="Healthy", description=f"{repository.name} store reachable")

    report = HealthReport(status=check.status, checks=[check])
    code = status.HTTP_200_OK if check.status == "Healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=report.model_dump())


# (path, endpoint, methods, options)
ROUTES = [
    ("/books", list_books, ["GET"], {"response_model": List[Book]}),
    ("/books/{book_id}", get_book, ["GET"], {"response_model": Book}),
    ("/books", create_book, ["POST"], {"response_model": Book, "status_code": status.HTTP_201_CREATED}),
    ("/books/{book_id}", update_book, ["PUT"], {"response_model": Book}),
    ("/books/{book_id}", delete_book, ["DELETE"], {"status_code": status.HTTP_204_NO_CONTENT}),
    ("/health", health, ["GET"], {"response_model": HealthReport, "tags": ["health"]}),
]

router = APIRouter(prefix="/api", tags=["books"])
for path, endpoint, methods, options in ROUTES:
    router.add_api_route(path, endpoint, methods=methods, **options)

app.include_router(router)


@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    return RedirectResponse(url="/docs")


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("store.unavailable", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Store unavailable"})


# must stay the first middleware registered (innermost)
@app.middleware("http")
async def unhandled_error_middleware(request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("request.failed", extra={"path": request.url.path, "method": request.method})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


@app.middleware("http")
async def security_headers(request, call_next):
    if settings.require_https:
        forwarded_proto = request.headers.get("x-forwarded-proto", "")
        scheme = forwarded_proto.lower() or request.url.scheme
        if scheme != "https":
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "HTTPS required"})

    response = await call_next(request)
    response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    return response


@app.middleware("http")
async def request_logging_middleware(request, call_next):
    request_logger.info("request.start", extra={"path": request.url.path, "method": request.method})
    response = await call_next(request)
    request_logger.info(
        "request.end",
        extra={"path": request.url.path, "method": request.method, "status": response.status_code},
    )
    return response


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response
