import logging
from datetime import date, timedelta
from typing import Callable, List, Optional, Tuple

from cybooks.database import Store
from cybooks.exceptions import LoanNotFound, NoCopyAvailable
from cybooks.models import Book, BookCopy, Loan, LoanView

logger = logging.getLogger(__name__)

DEFAULT_LOAN_DAYS = 5


class InventoryLedger:
    """Copy allocation and the loan lifecycle.

    ``Books.copiesAvailable`` is a denormalised counter. It always equals the
    number of that ISBN's copies with ``isLoaned = 0``: every flag flip and the
    matching counter update run inside one Store transaction.

    The Store is passed into every call; the ledger itself only holds the clock.
    """

    def __init__(self, clock: Callable[[], date] = date.today) -> None:
        self.clock = clock

    # ------------------------- Books & copies ------------------------- #
    def register_book(self, store: Store, isbn: str, copy_count: int) -> Book:
        """Create the Book row and ``copy_count`` copies, none of them loaned.

        Registering an ISBN that already has a Book row adds the new copies to it.
        """
        if copy_count < 0:
            raise ValueError("copy_count cannot be negative.")
        with store.transaction():
            store.insert(
                """
                INSERT INTO Books (isbn, copiesAvailable) VALUES (?, ?)
                ON CONFLICT(isbn) DO UPDATE SET copiesAvailable = copiesAvailable + excluded.copiesAvailable
                """,
                (isbn, copy_count),
            )
            store.insert_many(
                "INSERT INTO BookCopies (isbn, isLoaned) VALUES (?, 0)",
                [(isbn,)] * copy_count,
            )
            book = self.get_book(store, isbn)
        logger.info("Registered %d copies of ISBN %s", copy_count, isbn)
        return book

    def get_book(self, store: Store, isbn: str) -> Optional[Book]:
        row = store.query_one("SELECT isbn, copiesAvailable FROM Books WHERE isbn = ?", (isbn,))
        return Book.from_row(row) if row else None

    def has_copies(self, store: Store, isbn: str) -> bool:
        row = store.query_one("SELECT COUNT(*) FROM BookCopies WHERE isbn = ?", (isbn,))
        return row[0] > 0

    def list_copies(self, store: Store, isbn: str) -> List[BookCopy]:
        rows = store.query("SELECT copyID, isbn, isLoaned FROM BookCopies WHERE isbn = ? ORDER BY copyID", (isbn,))
        return [BookCopy.from_row(row) for row in rows]

    def count_available(self, store: Store, isbn: str) -> int:
        """Recount free copies from the copy rows (audit path, not used when lending)."""
        row = store.query_one(
            "SELECT COUNT(*) FROM BookCopies WHERE isbn = ? AND isLoaned = 0", (isbn,)
        )
        return row[0]

    def allocate_copy(self, store: Store, isbn: str) -> int:
        """Return the id of a copy of ``isbn`` that is not on loan."""
        row = store.query_one(
            "SELECT copyID FROM BookCopies WHERE isbn = ? AND isLoaned = 0 ORDER BY copyID LIMIT 1",
            (isbn,),
        )
        if row is None:
            raise NoCopyAvailable(f"No copy available for ISBN: {isbn}")
        return row["copyID"]

    # ------------------------- Loans ------------------------- #
    def issue_loan(self, store: Store, user_id: int, copy_id: int,
                   number_of_days: int = DEFAULT_LOAN_DAYS) -> Loan:
        """Lend ``copy_id`` to ``user_id``: loan row, copy flag and counter in one transaction."""
        loan_date = self.clock()
        due_date = loan_date + timedelta(days=number_of_days)
        with store.transaction():
            copy_row = store.query_one("SELECT isbn FROM BookCopies WHERE copyID = ?", (copy_id,))
            if copy_row is None:
                raise NoCopyAvailable(f"Copy {copy_id} does not exist.")
            isbn = copy_row["isbn"]

            # Guarded flip: a copy already on loan is never handed out twice
            flipped = store.execute(
                "UPDATE BookCopies SET isLoaned = 1 WHERE copyID = ? AND isLoaned = 0", (copy_id,)
            )
            if flipped == 0:
                raise NoCopyAvailable(f"Copy {copy_id} of ISBN {isbn} is already on loan.")

            loan_id = store.insert(
                """
                INSERT INTO Loans (userID, copyID, loanDate, numberOfDays, dueDate, returnDate, isReturned)
                VALUES (?, ?, ?, ?, ?, NULL, 0)
                """,
                (user_id, copy_id, loan_date.isoformat(), number_of_days, due_date.isoformat()),
            )
            store.execute(
                "UPDATE Books SET copiesAvailable = copiesAvailable - 1 WHERE isbn = ?", (isbn,)
            )

        logger.info("Loan %s issued: user %s, copy %s (ISBN %s), due %s",
                    loan_id, user_id, copy_id, isbn, due_date)
        return Loan(
            loan_id=loan_id,
            user_id=user_id,
            copy_id=copy_id,
            loan_date=loan_date,
            number_of_days=number_of_days,
            due_date=due_date,
        )

    def find_open_loan(self, store: Store, user_id: int, isbn: str) -> Optional[Loan]:
        """Most recent unreturned loan of ``isbn`` held by ``user_id``."""
        row = store.query_one(
            """
            SELECT l.* FROM Loans l
            JOIN BookCopies bc ON l.copyID = bc.copyID
            JOIN Books b ON bc.isbn = b.isbn
            WHERE l.userID = ? AND b.isbn = ? AND l.isReturned = 0
            ORDER BY l.loanDate DESC, l.loanID DESC
            LIMIT 1
            """,
            (user_id, isbn),
        )
        return Loan.from_row(row) if row else None

    def has_open_loans(self, store: Store, user_id: int) -> bool:
        row = store.query_one(
            "SELECT COUNT(*) FROM Loans WHERE userID = ? AND isReturned = 0", (user_id,)
        )
        return row[0] > 0

    def return_loan(self, store: Store, user_id: int, isbn: str) -> Loan:
        """Close the user's open loan for ``isbn`` and put the copy back on the shelf."""
        return_date = self.clock()
        with store.transaction():
            loan = self.find_open_loan(store, user_id, isbn)
            if loan is None:
                raise LoanNotFound(f"Loan not found for user {user_id} and ISBN {isbn}")

            store.execute(
                "UPDATE Loans SET returnDate = ?, isReturned = 1 WHERE loanID = ?",
                (return_date.isoformat(), loan.loan_id),
            )
            store.execute("UPDATE BookCopies SET isLoaned = 0 WHERE copyID = ?", (loan.copy_id,))
            store.execute(
                "UPDATE Books SET copiesAvailable = copiesAvailable + 1 WHERE isbn = ?", (isbn,)
            )

        loan.return_date = return_date
        loan.is_returned = True
        logger.info("Loan %s returned: user %s, ISBN %s", loan.loan_id, user_id, isbn)
        return loan

    # ------------------------- Reports ------------------------- #
    def query_loans(self, store: Store, only_open: bool = False, only_overdue: bool = False,
                    user_id: Optional[int] = None) -> List[LoanView]:
        """List loans; the filters are independent and AND-combined."""
        clauses = []
        params: list = []
        if only_open:
            clauses.append("l.isReturned = 0")
        if only_overdue:
            clauses.append("l.dueDate <= ?")
            params.append(self.clock().isoformat())
        if user_id is not None:
            clauses.append("l.userID = ?")
            params.append(user_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        rows = store.query(
            f"""
            SELECT l.loanID, l.userID, u.name, b.isbn, l.loanDate, l.dueDate, l.returnDate, l.isReturned
            FROM Loans l
            LEFT JOIN Users u ON l.userID = u.userID
            JOIN BookCopies bc ON l.copyID = bc.copyID
            JOIN Books b ON bc.isbn = b.isbn
            {where}
            ORDER BY l.loanID
            """,
            params,
        )
        return [LoanView.from_row(row) for row in rows]

    def most_loaned(self, store: Store, limit: int = 5, days: int = 30) -> List[Tuple[str, int]]:
        """ISBNs with the most loans started in the last ``days`` days, busiest first."""
        since = self.clock() - timedelta(days=days)
        rows = store.query(
            """
            SELECT b.isbn, COUNT(l.loanID) AS loanCount
            FROM Loans l
            JOIN BookCopies bc ON l.copyID = bc.copyID
            JOIN Books b ON bc.isbn = b.isbn
            WHERE l.loanDate >= ?
            GROUP BY b.isbn
            ORDER BY loanCount DESC, b.isbn ASC
            LIMIT ?
            """,
            (since.isoformat(), limit),
        )
        return [(row["isbn"], row["loanCount"]) for row in rows]
