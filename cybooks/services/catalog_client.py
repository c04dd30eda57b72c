import logging
from typing import Callable, List, Optional, Union

from cybooks.exceptions import CatalogError, InvalidArgument
from cybooks.services.http_client import get_http_client
from cybooks.services.metadata_parser import BibliographicRecord, parse_records
from cybooks.services.query_builder import RecordCategory, SearchField, build_query

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Union[bytes, str]]


class CatalogClient:
    """Best-effort searches against the remote union catalog.

    Every search returns a (possibly empty) list and never raises: bad input,
    transport errors and unparseable responses are logged and turned into
    "no results".
    """

    def __init__(self, fetch: Optional[Fetcher] = None, base_url: Optional[str] = None,
                 page_size: Optional[int] = None) -> None:
        self._fetch = fetch
        self.base_url = base_url
        self.page_size = page_size

    def _fetcher(self) -> Fetcher:
        if self._fetch is None:
            self._fetch = get_http_client().fetch
        return self._fetch

    def search(self, category: Union[str, RecordCategory], field: Union[str, SearchField],
               term: str) -> List[BibliographicRecord]:
        try:
            url = build_query(category, field, term, base_url=self.base_url, page_size=self.page_size)
        except InvalidArgument as exc:
            logger.warning("Catalog search rejected: %s", exc)
            return []

        try:
            body = self._fetcher()(url)
            records = parse_records(body)
        except CatalogError as exc:
            logger.warning("Catalog search failed for %s: %s", url, exc)
            return []
        except Exception:
            logger.exception("Unexpected error while querying the catalog: %s", url)
            return []

        logger.info("Catalog returned %d records for %s", len(records), url)
        return records

    def search_by_author(self, category: Union[str, RecordCategory], author: str) -> List[BibliographicRecord]:
        return self.search(category, SearchField.AUTHOR, author)

    def search_by_isbn(self, category: Union[str, RecordCategory], isbn: str) -> List[BibliographicRecord]:
        return self.search(category, SearchField.ISBN, isbn)

    def search_by_title(self, category: Union[str, RecordCategory], title: str) -> List[BibliographicRecord]:
        return self.search(category, SearchField.TITLE, title)

    def search_by_date(self, category: Union[str, RecordCategory], date: str) -> List[BibliographicRecord]:
        return self.search(category, SearchField.DATE, date)

    def isbn_exists(self, isbn: str) -> bool:
        """True if either record category knows the ISBN."""
        return bool(self.search_by_isbn(RecordCategory.BIB, isbn)) or bool(
            self.search_by_isbn(RecordCategory.AUT, isbn)
        )
