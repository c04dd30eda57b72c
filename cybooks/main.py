import logging
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape

from cybooks.config import settings
from cybooks.exceptions import LibraryError
from cybooks.library import LibraryManager

console = Console()

app = typer.Typer(help=f"{settings.app_name} {settings.app_version} library CLI")

_manager: Optional[LibraryManager] = None


def get_manager() -> LibraryManager:
    """Get or create the LibraryManager shared by the commands."""
    global _manager
    if _manager is None:
        _manager = LibraryManager()
    return _manager


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/] {escape(str(error))}", highlight=False)
    raise typer.Exit(code=1)


def _echo_block(text: str, empty_message: str) -> None:
    # Plain echo: listings are long single lines that must not be re-wrapped
    if text:
        typer.echo(text, nl=False)
    else:
        console.print(f"[dim]{empty_message}[/]")


@app.callback()
def _global_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable INFO logging"),
):
    """Global CLI options."""
    if settings.debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command("register-user")
def register_user(name: str, email: str, address: str = typer.Argument("")):
    """Register a new member."""
    try:
        user = get_manager().register_user(name, email, address)
    except LibraryError as e:
        _fail(e)
    console.print(f"[green]User registered successfully (ID {user.user_id}).[/]")


@app.command("update-user")
def update_user(
    user_id: int,
    name: str = typer.Option("", "--name", help="New name (blank keeps the current one)"),
    email: str = typer.Option("", "--email", help="New email (blank keeps the current one)"),
    address: str = typer.Option("", "--address", help="New address (blank keeps the current one)"),
):
    """Update a member's details."""
    try:
        get_manager().update_user(user_id, name, email, address)
    except LibraryError as e:
        _fail(e)
    console.print("[green]User updated successfully.[/]")


@app.command("delete-user")
def delete_user(user_id: int):
    """Delete a member without open loans."""
    try:
        get_manager().delete_user(user_id)
    except LibraryError as e:
        _fail(e)
    console.print("[green]User deleted successfully.[/]")


@app.command("find-user")
def find_user(user_id: int):
    """Show a member's profile and loans."""
    manager = get_manager()
    try:
        user = manager.find_user(user_id)
    except LibraryError as e:
        _fail(e)
    typer.echo(f"User ID: {user.user_id}")
    typer.echo(f"Name: {user.name}")
    typer.echo(f"Email: {user.email}")
    typer.echo(f"Address: {user.address}")
    _echo_block(manager.get_user_loans(user_id), "No loans.")


@app.command("add-book")
def add_book(isbn: str, copies: int = typer.Argument(1, min=0)):
    """Add copies of a book to the inventory."""
    try:
        book = get_manager().add_book(isbn, copies)
    except (LibraryError, ValueError) as e:
        _fail(e)
    console.print(f"[green]ISBN {book.isbn}: {book.copies_available} copies available.[/]")


@app.command("loan")
def loan(user_id: int, isbn: str):
    """Lend a copy of a book to a member."""
    try:
        record = get_manager().loan_book(user_id, isbn)
    except LibraryError as e:
        _fail(e)
    console.print(f"[green]Loan added successfully, due {record.due_date.isoformat()}.[/]")


@app.command("return")
def return_book(user_id: int, isbn: str):
    """Return a member's copy of a book."""
    try:
        get_manager().return_book(user_id, isbn)
    except LibraryError as e:
        _fail(e)
    console.print("[green]Book returned successfully.[/]")


@app.command("search")
def search(
    term: str,
    search_type: str = typer.Option("title", "--type", "-t", help="isbn | title | author | date"),
):
    """Search the union catalog."""
    try:
        result = get_manager().search_book(term, search_type)
    except LibraryError as e:
        _fail(e)
    typer.echo(result, nl=False)


@app.command("loans")
def loans(
    open_only: bool = typer.Option(False, "--open", help="Only loans not yet returned"),
    overdue: bool = typer.Option(False, "--overdue", help="Only loans due today or earlier"),
):
    """List loans."""
    _echo_block(get_manager().view_loans(open_only, overdue), "No loans.")


@app.command("user-loans")
def user_loans(user_id: int):
    """List a member's loans."""
    _echo_block(get_manager().get_user_loans(user_id), "No loans.")


@app.command("most-loaned")
def most_loaned():
    """Most loaned books over the last 30 days."""
    _echo_block(get_manager().most_loaned_last_30_days(), "No loans in the last 30 days.")


if __name__ == "__main__":
    app()
