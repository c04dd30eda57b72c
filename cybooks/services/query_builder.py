"""CQL query construction for the BnF SRU search endpoint."""

from enum import Enum
from typing import Optional, Union
from urllib.parse import quote_plus

from cybooks.config import settings
from cybooks.exceptions import InvalidArgument


class RecordCategory(str, Enum):
    """Record categories exposed by the catalog: bibliographic and authority records."""
    BIB = "bib"
    AUT = "aut"


class SearchField(str, Enum):
    AUTHOR = "author"
    ISBN = "isbn"
    TITLE = "title"
    DATE = "date"

    @property
    def operator(self) -> str:
        # ISBNs must match exactly; the other indexes match on all tokens
        return "adj" if self is SearchField.ISBN else "all"


def parse_category(value: Union[str, RecordCategory]) -> RecordCategory:
    try:
        return RecordCategory(value)
    except ValueError:
        raise InvalidArgument(f"Record type not valid: {value!r}") from None


def parse_field(value: Union[str, SearchField]) -> SearchField:
    try:
        return SearchField(value)
    except ValueError:
        raise InvalidArgument(f"Search field not valid: {value!r}") from None


def build_cql(category: Union[str, RecordCategory], field: Union[str, SearchField], value: str) -> str:
    """Return the unencoded CQL expression, e.g. ``(bib.title all "Les Misérables")``."""
    cat = parse_category(category)
    fld = parse_field(field)
    if not value:
        raise InvalidArgument(f"{fld.value} can't be empty")
    return f'({cat.value}.{fld.value} {fld.operator} "{value}")'


def build_query(
    category: Union[str, RecordCategory],
    field: Union[str, SearchField],
    value: str,
    base_url: Optional[str] = None,
    page_size: Optional[int] = None,
) -> str:
    """Build the full searchRetrieve URL for the first page of Dublin Core results."""
    cql = build_cql(category, field, value)
    url = base_url if base_url is not None else settings.catalog_base_url
    size = page_size if page_size is not None else settings.catalog_page_size
    return f"{url}{quote_plus(cql)}&recordSchema=dublincore&maximumRecords={size}&startRecord=1"
