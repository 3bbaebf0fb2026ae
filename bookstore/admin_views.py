from rich import box
from rich.columns import Columns
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .admin import AdminClient, BookForm, Notification
from .models import Book

VIEWS = ("grid", "table", "docs")

ENDPOINTS = (
    ("GET", "/api/books", "Get all books"),
    ("GET", "/api/books/{id}", "Get a book by ID"),
    ("POST", "/api/books", "Create a new book"),
    ("PUT", "/api/books/{id}", "Update a book"),
    ("DELETE", "/api/books/{id}", "Delete a book"),
    ("GET", "/api/health", "Check API health"),
)


def _price(book: Book) -> str:
    return f"${book.price:.2f}"


def render_status(admin: AdminClient) -> Panel:
    style = "bold green" if admin.is_connected else "bold red"
    body = Text.assemble(("API: ", "dim"), admin.base_url, "  ", (f"[{admin.api_status}]", style))
    return Panel(body, title="BookStore API Status", box=box.ROUNDED)


def _empty() -> Text:
    return Text.assemble(
        ("No books loaded\n", "bold"),
        ("Load books from the API to see them here", "dim"),
    )


def render_grid(books: list[Book]) -> RenderableType:
    if not books:
        return _empty()
    cards = []
    for book in books:
        body = Text.assemble(
            (f"{book.genre or '-'}\n", "magenta"),
            ("Author: ", "bold"), f"{book.author}\n",
            ("Year: ", "bold"), f"{book.year}\n",
            ("Price: ", "bold"), _price(book),
        )
        cards.append(Panel(body, title=f"#{book.id} {book.title}", width=40))
    return Columns(cards)


def render_table(books: list[Book]) -> RenderableType:
    if not books:
        return _empty()
    table = Table(title="Books", header_style="bold cyan", box=box.SIMPLE_HEAVY)
    table.add_column("ID", justify="right", no_wrap=True)
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Year", justify="right")
    table.add_column("Genre", style="magenta")
    table.add_column("Price", justify="right")
    for book in books:
        table.add_row(str(book.id), book.title, book.author, str(book.year), book.genre or "", _price(book))
    return table


def render_docs(base_url: str) -> RenderableType:
    explorer = Panel(
        Text.assemble(
            "Interactive API documentation is served at:\n",
            (f"{base_url}/docs", "bold underline"),
        ),
        title="API Documentation",
    )
    endpoints = Table(title="API Endpoints", show_header=False, box=box.MINIMAL)
    endpoints.add_column("Method", style="bold")
    endpoints.add_column("Path")
    endpoints.add_column("Description", style="dim")
    for method, path, description in ENDPOINTS:
        endpoints.add_row(method, path, description)
    return Group(explorer, endpoints)


def render_view(admin: AdminClient, view: str = "grid") -> RenderableType:
    if view not in VIEWS:
        raise ValueError(f"unknown view {view!r}, expected one of {', '.join(VIEWS)}")
    if view == "docs":
        return render_docs(admin.base_url)
    if admin.is_loading:
        return Text("Loading books...")
    if view == "table":
        return render_table(admin.books)
    return render_grid(admin.books)


def render_form(form: BookForm) -> Panel:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for name, value in form.values.items():
        table.add_row(name.capitalize(), value)
    return Panel(table, title=form.title, subtitle=form.mode.value)


def render_notification(notification: Notification) -> Text:
    style = "bold red" if notification.variant == "destructive" else "bold green"
    return Text.assemble((notification.title, style), " ", notification.description)
