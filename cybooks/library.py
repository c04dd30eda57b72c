import logging
import sqlite3
from datetime import date
from typing import Callable, List, Optional

from cybooks.database import Store, initialize_database
from cybooks.exceptions import (
    BookNotFound,
    EmailAlreadyExists,
    InvalidEmailFormat,
    InvalidSearchTerm,
    InvalidSearchType,
    NoCopyAvailable,
    UserHasLoans,
    UserNotFound,
)
from cybooks.ledger import InventoryLedger
from cybooks.models import Book, Loan, LoanView, User
from cybooks.services.catalog_client import CatalogClient
from cybooks.services.metadata_parser import BibliographicRecord
from cybooks.services.query_builder import RecordCategory, SearchField
from cybooks.validators import EmailValidator

logger = logging.getLogger(__name__)

# Copies created when a loan is requested for an ISBN the library has never stocked.
DEFAULT_COPY_BATCH = 5
SEARCH_RESULT_LIMIT = 50
MOST_LOANED_LIMIT = 5
MOST_LOANED_WINDOW_DAYS = 30


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_loan_line(loan: LoanView, include_user: bool = True) -> str:
    user_part = f", User: {loan.user_name}" if include_user else ""
    return (
        f"Loan ID: {loan.loan_id}{user_part}, ISBN: {loan.isbn}, "
        f"Loan Date: {loan.loan_date.isoformat()}, Due Date: {loan.due_date.isoformat()} "
        f"Returned ? :{format_bool(loan.is_returned)}"
    )


def format_records(records: List[BibliographicRecord]) -> str:
    return "\n".join(record.to_text() for record in records)


class LibraryManager:
    """Manages library members, loans and catalog lookups on top of the Store."""

    def __init__(self, db_file: Optional[str] = None, *, store: Optional[Store] = None,
                 catalog: Optional[CatalogClient] = None,
                 clock: Callable[[], date] = date.today) -> None:
        self.store = store or initialize_database(db_file)
        self.ledger = InventoryLedger(clock=clock)
        self.catalog = catalog or CatalogClient()

    # ------------------------- Users ------------------------- #
    def register_user(self, name: str, email: str, address: str) -> User:
        self._check_email_format(email)
        if self._email_exists(email):
            raise EmailAlreadyExists(f"Email already exists: {email}")

        try:
            user_id = self.store.insert(
                "INSERT INTO Users (name, email, address) VALUES (?, ?, ?)",
                (name, email, address),
            )
        except sqlite3.IntegrityError as e:
            raise EmailAlreadyExists(f"Email already exists: {email}") from e
        logger.info("Registered user %s <%s>", user_id, email)
        return User(user_id=user_id, name=name, email=email, address=address)

    def update_user(self, user_id: int, name: Optional[str] = None, email: Optional[str] = None,
                    address: Optional[str] = None) -> User:
        """Update a user's details. Empty or missing values leave the field unchanged."""
        user = self.find_user(user_id)

        if email:
            self._check_email_format(email)
            if email != user.email and self._email_exists(email):
                raise EmailAlreadyExists(f"Email already exists: {email}")
            user.email = email
        if name:
            user.name = name
        if address:
            user.address = address

        try:
            self.store.execute(
                "UPDATE Users SET name = ?, email = ?, address = ? WHERE userID = ?",
                (user.name, user.email, user.address, user.user_id),
            )
        except sqlite3.IntegrityError as e:
            raise EmailAlreadyExists(f"Email already exists: {user.email}") from e
        return user

    def delete_user(self, user_id: int) -> None:
        with self.store.transaction():
            self.find_user(user_id)
            if self.ledger.has_open_loans(self.store, user_id):
                raise UserHasLoans("User has loans and cannot be deleted")
            self.store.execute("DELETE FROM Users WHERE userID = ?", (user_id,))
        logger.info("Deleted user %s", user_id)

    def find_user(self, user_id: int) -> User:
        row = self.store.query_one("SELECT * FROM Users WHERE userID = ?", (user_id,))
        if row is None:
            raise UserNotFound(f"User not found: {user_id}")
        return User.from_row(row)

    def find_user_by_email(self, email: str) -> User:
        row = self.store.query_one("SELECT * FROM Users WHERE email = ?", (email,))
        if row is None:
            raise UserNotFound(f"User not found for email: {email}")
        return User.from_row(row)

    def user_exists(self, user_id: int) -> bool:
        return self.store.query_one("SELECT 1 FROM Users WHERE userID = ?", (user_id,)) is not None

    # ------------------------- Books & loans ------------------------- #
    def add_book(self, isbn: str, copies: int) -> Book:
        return self.ledger.register_book(self.store, isbn, copies)

    def get_book(self, isbn: str) -> Book:
        book = self.ledger.get_book(self.store, isbn)
        if book is None:
            raise BookNotFound(f"Book not found: {isbn}")
        return book

    def loan_book(self, user_id: int, isbn: str) -> Loan:
        with self.store.transaction():
            self.find_user(user_id)
            if not self.ledger.has_copies(self.store, isbn):
                logger.info("ISBN %s has no copies, provisioning %d", isbn, DEFAULT_COPY_BATCH)
                self.ledger.register_book(self.store, isbn, DEFAULT_COPY_BATCH)
            try:
                copy_id = self.ledger.allocate_copy(self.store, isbn)
            except NoCopyAvailable:
                logger.info("No copy of ISBN %s left for user %s", isbn, user_id)
                raise
            return self.ledger.issue_loan(self.store, user_id, copy_id)

    def return_book(self, user_id: int, isbn: str) -> Loan:
        return self.ledger.return_loan(self.store, user_id, isbn)

    # ------------------------- Catalog search ------------------------- #
    def search_records(self, term: str, search_type: str) -> List[BibliographicRecord]:
        """Look ``term`` up in both record categories, preferring bibliographic hits."""
        if not term:
            raise InvalidSearchTerm("Search term cannot be empty.")
        try:
            field = SearchField((search_type or "").lower())
        except ValueError:
            raise InvalidSearchType(f"Invalid search type: {search_type}") from None

        bib_records = self.catalog.search(RecordCategory.BIB, field, term)
        aut_records = self.catalog.search(RecordCategory.AUT, field, term)
        records = bib_records or aut_records
        if not records:
            raise BookNotFound(f"Book not found: {term}")
        return records[:SEARCH_RESULT_LIMIT]

    def search_book(self, term: str, search_type: str) -> str:
        return format_records(self.search_records(term, search_type))

    def isbn_exists_in_catalog(self, isbn: str) -> bool:
        return self.catalog.isbn_exists(isbn)

    # ------------------------- Reports ------------------------- #
    def get_user_loans(self, user_id: int) -> str:
        loans = self.ledger.query_loans(self.store, user_id=user_id)
        return "".join(f"{format_loan_line(loan, include_user=False)}\n" for loan in loans)

    def view_loans(self, only_open: bool = False, only_overdue: bool = False) -> str:
        loans = self.ledger.query_loans(self.store, only_open=only_open, only_overdue=only_overdue)
        return "".join(f"{format_loan_line(loan)}\n" for loan in loans)

    def most_loaned_last_30_days(self) -> str:
        ranking = self.ledger.most_loaned(
            self.store, limit=MOST_LOANED_LIMIT, days=MOST_LOANED_WINDOW_DAYS
        )
        return "".join(f"ISBN: {isbn}, Loan Count: {count}\n" for isbn, count in ranking)

    # ------------------------- Utilities ------------------------- #
    @staticmethod
    def _check_email_format(email: str) -> None:
        if not EmailValidator.is_valid_email(email):
            raise InvalidEmailFormat(f"Invalid email format: {email}")

    def _email_exists(self, email: str) -> bool:
        row = self.store.query_one("SELECT COUNT(*) FROM Users WHERE email = ?", (email,))
        return row[0] > 0

    def close(self) -> None:
        self.store.close()
