import pytest

from cybooks.database import initialize_database
from cybooks.library import LibraryManager
from cybooks.services.catalog_client import CatalogClient


class FakeCatalog(CatalogClient):
    """Catalog client whose fetch collaborator serves canned bodies per record category."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.urls = []
        super().__init__(fetch=self._serve)

    def _serve(self, url):
        self.urls.append(url)
        for category, body in self.responses.items():
            if f"%28{category}." in url:
                return body
        return b"<searchRetrieveResponse/>"


@pytest.fixture
def store(tmp_path, request):
    # Unique database file per test
    db_file = str(tmp_path / f"test_{request.node.name}.db")
    store = initialize_database(db_file)
    yield store
    try:
        store.close()
    except Exception:
        pass


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def lib(store, catalog):
    return LibraryManager(store=store, catalog=catalog)
