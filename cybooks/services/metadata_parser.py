"""Dublin Core metadata parsing for SRU responses.

An SRU ``searchRetrieve`` response wraps each hit in a ``recordData``
element that holds one ``oai_dc:dc`` record. Every child of that record is
a ``dc:*`` element; ``parse_records`` maps them onto
``BibliographicRecord`` fields and drops the records that carry no ISBN,
since the library keys everything on ISBN.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Union

from cybooks.exceptions import MalformedInput

logger = logging.getLogger(__name__)

SRW_NS = "http://www.loc.gov/zing/srw/"
OAI_DC_NS = "http://www.openarchives.org/OAI/2.0/oai_dc/"
DC_NS = "http://purl.org/dc/elements/1.1/"

ISBN_MARKER = "ISBN"


@dataclass
class BibliographicRecord:
    """Metadata for one catalog record (transient, never persisted)"""
    identifiers: Set[str] = field(default_factory=set)
    isbn: str = ""
    title: str = ""
    authors: List[str] = field(default_factory=list)
    publisher: str = ""
    date: str = ""
    format: str = ""
    languages: Set[str] = field(default_factory=set)
    types: Set[str] = field(default_factory=set)
    rights: Set[str] = field(default_factory=set)

    def to_text(self) -> str:
        """Render the labelled block shown to users."""
        authors = "".join(f"{author};" for author in self.authors)
        return (
            f"Title: {self.title}\n"
            f"Authors: {authors}\n"
            f"ISBN: {self.isbn}\n"
            f"Publisher: {self.publisher}\n"
            f"Date: {self.date}\n"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifiers": sorted(self.identifiers),
            "isbn": self.isbn,
            "title": self.title,
            "authors": list(self.authors),
            "publisher": self.publisher,
            "date": self.date,
            "format": self.format,
            "languages": sorted(self.languages),
            "types": sorted(self.types),
            "rights": sorted(self.rights),
        }


def _local_name(tag: Any) -> str:
    if not isinstance(tag, str):
        # Comments and processing instructions
        return ""
    return tag.rsplit("}", 1)[-1]


def _text(elem: ET.Element) -> str:
    return "".join(elem.itertext())


def _apply_identifier(record: BibliographicRecord, raw: str) -> None:
    if ISBN_MARKER in raw:
        record.isbn = raw.replace(ISBN_MARKER, "").strip()
    else:
        record.identifiers.add(raw)


def _apply_element(record: BibliographicRecord, elem: ET.Element) -> None:
    tag = _local_name(elem.tag)
    raw = _text(elem)
    value = raw.strip()

    if tag == "identifier":
        _apply_identifier(record, raw)
    elif tag == "creator":
        record.authors.append(value)
    elif tag == "title":
        record.title = value
    elif tag == "publisher":
        record.publisher = value
    elif tag == "language":
        record.languages.add(value)
    elif tag == "type":
        record.types.add(value)
    elif tag == "format":
        record.format = value
    elif tag == "date":
        record.date = value
    elif tag == "rights":
        record.rights.add(value)
    # Anything else (description, subject, ...) is ignored


def parse_record(dc_elem: ET.Element) -> BibliographicRecord:
    """Build a record from one ``oai_dc:dc`` element."""
    record = BibliographicRecord()
    for child in dc_elem:
        _apply_element(record, child)
    return record


def parse_records(xml: Union[bytes, str]) -> List[BibliographicRecord]:
    """Parse an SRU response body into the records that carry an ISBN.

    Raises ``MalformedInput`` when the body is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        raise MalformedInput(f"Catalog response is not well-formed XML: {exc}") from exc

    records: List[BibliographicRecord] = []
    dropped = 0
    for record_data in root.iter():
        if _local_name(record_data.tag) != "recordData":
            continue
        for dc_elem in record_data:
            if _local_name(dc_elem.tag) != "dc":
                continue
            record = parse_record(dc_elem)
            if not record.isbn:
                dropped += 1
                continue
            records.append(record)

    if dropped:
        logger.debug("Dropped %d catalog records without ISBN", dropped)
    return records
