import logging
from unittest.mock import MagicMock

import pytest

from cybooks.exceptions import TransportFailure
from cybooks.services.catalog_client import CatalogClient
from cybooks.services.query_builder import RecordCategory
from sru_samples import LES_MISERABLES, NO_ISBN_RECORD, sru_response


def test_search_by_title_builds_url_and_parses():
    fetch = MagicMock(return_value=sru_response(LES_MISERABLES, NO_ISBN_RECORD))
    client = CatalogClient(fetch=fetch)

    records = client.search_by_title("bib", "Les misérables")

    assert [r.isbn for r in records] == ["9782253096344"]
    url = fetch.call_args[0][0]
    assert "%28bib.title+all+%22Les+mis%C3%A9rables%22%29" in url
    assert url.endswith("&recordSchema=dublincore&maximumRecords=500&startRecord=1")


@pytest.mark.parametrize(
    "method, expected",
    [
        ("search_by_author", "aut.author+all"),
        ("search_by_isbn", "aut.isbn+adj"),
        ("search_by_title", "aut.title+all"),
        ("search_by_date", "aut.date+all"),
    ],
)
def test_each_search_targets_its_index(method, expected):
    fetch = MagicMock(return_value=sru_response())
    client = CatalogClient(fetch=fetch)
    assert getattr(client, method)(RecordCategory.AUT, "x") == []
    assert expected in fetch.call_args[0][0]


@pytest.mark.parametrize("category, term", [("bib", ""), ("", "Hugo"), ("catalog", "Hugo")])
def test_invalid_input_returns_empty_without_fetching(category, term):
    fetch = MagicMock()
    client = CatalogClient(fetch=fetch)
    assert client.search_by_author(category, term) == []
    fetch.assert_not_called()


def test_transport_failure_degrades_to_empty(caplog):
    fetch = MagicMock(side_effect=TransportFailure("Catalog unreachable"))
    client = CatalogClient(fetch=fetch)
    with caplog.at_level(logging.WARNING):
        assert client.search_by_isbn("bib", "9782253096344") == []
    assert "Catalog unreachable" in caplog.text


def test_malformed_response_degrades_to_empty():
    client = CatalogClient(fetch=MagicMock(return_value=b"<html><body>Service down"))
    assert client.search_by_title("bib", "Hugo") == []


def test_unexpected_collaborator_error_never_propagates():
    client = CatalogClient(fetch=MagicMock(side_effect=OSError("socket closed")))
    assert client.search_by_title("bib", "Hugo") == []


def test_custom_base_url_and_page_size():
    fetch = MagicMock(return_value=sru_response())
    client = CatalogClient(fetch=fetch, base_url="http://sru.test/?query=", page_size=20)
    client.search_by_title("bib", "Hugo")
    url = fetch.call_args[0][0]
    assert url.startswith("http://sru.test/?query=")
    assert "maximumRecords=20" in url


def test_isbn_exists_checks_both_categories():
    def fetch(url):
        if "aut.isbn" in url:
            return sru_response(LES_MISERABLES)
        return sru_response()

    assert CatalogClient(fetch=fetch).isbn_exists("9782253096344") is True
    assert CatalogClient(fetch=MagicMock(return_value=sru_response())).isbn_exists("1") is False


def test_default_fetcher_is_global_http_client(monkeypatch):
    fake_http = MagicMock()
    fake_http.fetch.return_value = sru_response(LES_MISERABLES)
    monkeypatch.setattr("cybooks.services.catalog_client.get_http_client", lambda: fake_http)

    records = CatalogClient().search_by_isbn("bib", "9782253096344")
    assert len(records) == 1
    fake_http.fetch.assert_called_once()
