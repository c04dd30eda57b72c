import sqlite3

import pytest

from cybooks.database import MEMORY_DATABASE, Store, create_tables, initialize_database


def _count_books(store):
    return store.query_one("SELECT COUNT(*) FROM Books")[0]


def test_tables_exist(store):
    names = {row["name"] for row in store.query("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"Users", "Books", "BookCopies", "Loans"} <= names


def test_create_tables_is_idempotent(store):
    create_tables(store)
    create_tables(store)
    assert _count_books(store) == 0


def test_transaction_commits(store):
    with store.transaction():
        store.insert("INSERT INTO Books (isbn, copiesAvailable) VALUES (?, ?)", ("1", 1))
    assert _count_books(store) == 1


def test_transaction_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert("INSERT INTO Books (isbn, copiesAvailable) VALUES (?, ?)", ("1", 1))
            raise RuntimeError("boom")
    assert _count_books(store) == 0


def test_nested_transaction_joins_outer(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            with store.transaction():
                store.insert("INSERT INTO Books (isbn, copiesAvailable) VALUES (?, ?)", ("1", 1))
            raise RuntimeError("outer fails after inner finished")
    assert _count_books(store) == 0


def test_counter_cannot_go_negative(store):
    store.insert("INSERT INTO Books (isbn, copiesAvailable) VALUES (?, ?)", ("1", 0))
    with pytest.raises(sqlite3.IntegrityError):
        store.execute("UPDATE Books SET copiesAvailable = copiesAvailable - 1 WHERE isbn = ?", ("1",))


def test_persistence_across_connections(tmp_path):
    db_file = str(tmp_path / "persist.db")
    first = initialize_database(db_file)
    first.insert("INSERT INTO Books (isbn, copiesAvailable) VALUES (?, ?)", ("1", 3))
    first.close()

    second = initialize_database(db_file)
    assert second.query_one("SELECT copiesAvailable FROM Books WHERE isbn = ?", ("1",))[0] == 3
    second.close()


def test_memory_database():
    store = Store(MEMORY_DATABASE)
    create_tables(store)
    assert _count_books(store) == 0
    store.close()


def test_failed_commit_is_rolled_back(store):
    with pytest.raises(sqlite3.IntegrityError):
        with store.transaction():
            # Foreign keys are checked at COMMIT once deferred
            store.execute("PRAGMA defer_foreign_keys = ON")
            store.insert(
                "INSERT INTO BookCopies (isbn, isLoaned) VALUES (?, 0)", ("missing",)
            )
    assert store.query_one("SELECT COUNT(*) FROM BookCopies")[0] == 0

    with store.transaction():
        store.insert("INSERT INTO Books (isbn, copiesAvailable) VALUES (?, ?)", ("1", 1))
    assert _count_books(store) == 1
