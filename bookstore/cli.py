"""Command line entry point: runs the API server and hosts the admin client."""

from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from .admin import FORM_FIELDS, AdminClient
from .admin_views import VIEWS, render_form, render_notification, render_status, render_view
from .config import get_api_url

console = Console()
app = typer.Typer(help="BookStore API server and admin client", no_args_is_help=True)


def make_admin(base_url: str) -> AdminClient:
    return AdminClient(base_url)


def _admin(ctx: typer.Context) -> AdminClient:
    return ctx.obj


def _flush(admin: AdminClient) -> None:
    for notification in admin.drain_notifications():
        console.print(render_notification(notification))


@app.callback()
def _global_options(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-u",
        envvar="BOOKSTORE_API_URL",
        help="Base URL of the BookStore API",
    ),
):
    ctx.obj = make_admin(base_url or get_api_url())


@app.command("serve")
def cli_serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Start the API server."""
    console.print(f"[green]Serving BookStore API on http://{host}:{port}/[/]")
    uvicorn.run("bookstore.app:app", host=host, port=port, reload=reload)


@app.command("status")
def cli_status(ctx: typer.Context):
    """Check API connectivity."""
    admin = _admin(ctx)
    admin.check_health()
    console.print(render_status(admin))
    if not admin.is_connected:
        raise typer.Exit(code=1)


@app.command("books")
def cli_books(
    ctx: typer.Context,
    view: str = typer.Option("grid", "--view", "-v", help="grid | table"),
):
    """Load and show all books."""
    admin = _admin(ctx)
    if view not in ("grid", "table"):
        raise typer.BadParameter("view must be grid or table", param_hint="--view")
    admin.load_books()
    console.print(render_status(admin))
    console.print(render_view(admin, view))
    if not admin.is_connected:
        raise typer.Exit(code=1)


@app.command("docs")
def cli_docs(ctx: typer.Context):
    """Show where the API documentation lives and the available endpoints."""
    console.print(render_view(_admin(ctx), "docs"))


@app.command("add")
def cli_add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title"),
    author: str = typer.Option(..., "--author"),
    year: int = typer.Option(..., "--year"),
    genre: str = typer.Option(..., "--genre"),
    price: float = typer.Option(..., "--price"),
):
    """Add a book."""
    admin = _admin(ctx)
    admin.open_create()
    saved = admin.submit({"title": title, "author": author, "year": year, "genre": genre, "price": price})
    _flush(admin)
    if saved is None:
        raise typer.Exit(code=1)
    console.print(f"Created book [bold]#{saved.id}[/]")


@app.command("edit")
def cli_edit(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="Book id"),
    title: Optional[str] = typer.Option(None, "--title"),
    author: Optional[str] = typer.Option(None, "--author"),
    year: Optional[int] = typer.Option(None, "--year"),
    genre: Optional[str] = typer.Option(None, "--genre"),
    price: Optional[float] = typer.Option(None, "--price"),
):
    """Edit a book; omitted fields keep their current value."""
    admin = _admin(ctx)
    admin.load_books()
    if not admin.is_connected:
        console.print(render_status(admin))
        raise typer.Exit(code=1)
    try:
        admin.open_edit(book_id)
    except KeyError:
        console.print(f"[bold red]Book {book_id} not found[/]")
        raise typer.Exit(code=1)
    changes = {"title": title, "author": author, "year": year, "genre": genre, "price": price}
    saved = admin.submit({name: value for name, value in changes.items() if value is not None})
    _flush(admin)
    if saved is None:
        raise typer.Exit(code=1)


@app.command("delete")
def cli_delete(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="Book id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a book."""
    admin = _admin(ctx)
    if not yes and not Confirm.ask(f"Delete book {book_id}?", default=False):
        raise typer.Exit()
    deleted = admin.delete_book(book_id)
    _flush(admin)
    if not deleted:
        raise typer.Exit(code=1)


def _prompt_form(admin: AdminClient) -> None:
    while admin.form.is_open:
        console.print(render_form(admin.form))
        values = {
            name: Prompt.ask(name.capitalize(), default=admin.form.values.get(name) or None) or ""
            for name in FORM_FIELDS
        }
        admin.submit(values)
        _flush(admin)
        if admin.form.is_open and not Confirm.ask("Try again?", default=True):
            admin.close_form()


@app.command("shell")
def cli_shell(ctx: typer.Context):
    """Interactive admin session against one API."""
    admin = _admin(ctx)
    admin.check_health()
    view = "grid"
    commands = ["load", "url", "view", "add", "edit", "delete", "quit"]
    while True:
        console.print(render_status(admin))
        console.print(render_view(admin, view))
        choice = Prompt.ask("Command", choices=commands, default="load")
        if choice == "quit":
            break
        if choice == "load":
            admin.load_books()
        elif choice == "url":
            admin.set_base_url(Prompt.ask("API URL", default=admin.base_url))
        elif choice == "view":
            view = Prompt.ask("View", choices=list(VIEWS), default=view)
        elif choice == "add":
            admin.open_create()
            _prompt_form(admin)
        elif choice == "edit":
            book_id = IntPrompt.ask("Book id")
            try:
                admin.open_edit(book_id)
            except KeyError:
                console.print(f"[bold red]Book {book_id} is not loaded[/]")
                continue
            _prompt_form(admin)
        elif choice == "delete":
            book_id = IntPrompt.ask("Book id")
            if Confirm.ask(f"Delete book {book_id}?", default=False):
                admin.delete_book(book_id)
        _flush(admin)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
