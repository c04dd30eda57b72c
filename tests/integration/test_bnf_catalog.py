"""Live queries against the BnF SRU endpoint.

Deselected by default; run with ``pytest -m integration``.
"""

import pytest

from cybooks.services.catalog_client import CatalogClient

pytestmark = pytest.mark.integration


def test_search_by_isbn_live():
    records = CatalogClient().search_by_isbn("bib", "9782253096344")
    assert records
    assert all(record.isbn for record in records)


def test_search_by_author_live():
    records = CatalogClient().search_by_author("bib", "Victor Hugo")
    assert records
    assert any("Hugo" in author for record in records for author in record.authors)
