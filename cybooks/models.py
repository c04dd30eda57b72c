"""Data models for the library inventory.

Simple dataclasses for the rows persisted by the Store: users, books,
physical copies and loans. Each model knows how to build itself from a
``sqlite3.Row``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional


def _to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


@dataclass
class User:
    """A registered library member."""

    user_id: int
    name: str
    email: str
    address: str = ""

    @staticmethod
    def from_row(row: Mapping[str, Any]) -> "User":
        return User(
            user_id=row["userID"],
            name=row["name"],
            email=row["email"],
            address=row["address"] or "",
        )


@dataclass
class Book:
    """A title held by the library; ``copies_available`` counts copies not on loan."""

    isbn: str
    copies_available: int

    @staticmethod
    def from_row(row: Mapping[str, Any]) -> "Book":
        return Book(isbn=row["isbn"], copies_available=row["copiesAvailable"])


@dataclass
class BookCopy:
    """One physical, lendable copy of a book."""

    copy_id: int
    isbn: str
    is_loaned: bool = False

    @staticmethod
    def from_row(row: Mapping[str, Any]) -> "BookCopy":
        return BookCopy(copy_id=row["copyID"], isbn=row["isbn"], is_loaned=bool(row["isLoaned"]))


@dataclass
class Loan:
    """A copy lent to a user.

    Created open; closed exactly once when the copy comes back. The due date
    never changes after creation.
    """

    loan_id: int
    user_id: Optional[int]
    copy_id: int
    loan_date: date
    number_of_days: int
    due_date: date
    return_date: Optional[date] = None
    is_returned: bool = False

    @staticmethod
    def from_row(row: Mapping[str, Any]) -> "Loan":
        return Loan(
            loan_id=row["loanID"],
            user_id=row["userID"],
            copy_id=row["copyID"],
            loan_date=_to_date(row["loanDate"]),
            number_of_days=row["numberOfDays"],
            due_date=_to_date(row["dueDate"]),
            return_date=_to_date(row["returnDate"]),
            is_returned=bool(row["isReturned"]),
        )

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Return True if the loan is still open and due on or before ``today``."""
        if self.is_returned:
            return False
        return self.due_date <= (today or date.today())

    @property
    def status(self) -> str:
        return "RETURNED" if self.is_returned else "OPEN"


@dataclass
class LoanView:
    """A loan joined with its borrower's name and the copy's ISBN."""

    loan_id: int
    user_id: Optional[int]
    user_name: str
    isbn: str
    loan_date: date
    due_date: date
    return_date: Optional[date]
    is_returned: bool

    @staticmethod
    def from_row(row: Mapping[str, Any]) -> "LoanView":
        return LoanView(
            loan_id=row["loanID"],
            user_id=row["userID"],
            user_name=row["name"] or "",
            isbn=row["isbn"],
            loan_date=_to_date(row["loanDate"]),
            due_date=_to_date(row["dueDate"]),
            return_date=_to_date(row["returnDate"]),
            is_returned=bool(row["isReturned"]),
        )
