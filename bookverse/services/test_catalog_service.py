# bookverse/services/test_catalog_service.py
"""
Catalog lookup tests with the HTTP session mocked.

Usage: python -m pytest bookverse/services/test_catalog_service.py -v
"""

from unittest.mock import MagicMock

import pytest
import requests

from bookverse.services.catalog_service import CatalogService


def _response(payload=None, error=None):
    response = MagicMock()
    if error:
        response.raise_for_status.side_effect = error
    response.json.return_value = payload
    return response


def _service(routes):
    """routes: url prefix -> response or exception."""
    session = MagicMock()

    def fake_get(url, params=None, timeout=None):
        for prefix, result in routes.items():
            if url.startswith(prefix):
                if isinstance(result, Exception):
                    raise result
                return result
        raise AssertionError(f"unexpected url {url}")

    session.get.side_effect = fake_get
    return CatalogService(timeout=3, session=session), session


SEARCH = "https://openlibrary.org/search.json"

PUBLIC_DOC = {
    "title": "Moby Dick; or, The Whale",
    "ebook_access": "public",
    "ia": ["broken_scan", "french_scan", "mobydick00melv"],
    "author_name": ["Herman Melville"],
    "first_publish_year": 1851,
    "cover_i": 42,
}


def test_finds_first_english_pdf():
    service, session = _service({
        SEARCH: _response({"docs": [
            {"title": "Moby Dick", "ebook_access": "borrowable", "ia": ["x"]},
            PUBLIC_DOC,
        ]}),
        "https://archive.org/metadata/broken_scan": requests.ConnectionError("reset"),
        "https://archive.org/metadata/french_scan": _response({"metadata": {"language": "fre"}, "files": [{"name": "a.pdf"}]}),
        "https://archive.org/metadata/mobydick00melv": _response({
            "metadata": {"language": "English"},
            "files": [{"name": "cover.jpg"}, {"name": "moby dick.pdf"}],
        }),
    })

    result = service.find_public_domain_book("moby dick")

    assert result == {
        "title": "Moby Dick; or, The Whale",
        "author": "Herman Melville",
        "publish_year": 1851,
        "cover_url": "https://covers.openlibrary.org/b/id/42-M.jpg",
        "pdf_url": "https://archive.org/download/mobydick00melv/moby%20dick.pdf",
        "archive_id": "mobydick00melv",
    }
    assert session.get.call_args_list[0].kwargs["timeout"] == 3


def test_no_public_candidate_returns_none():
    service, _ = _service({SEARCH: _response({"docs": [{"title": "Moby Dick", "ebook_access": "printdisabled", "ia": ["x"]}]})})
    assert service.find_public_domain_book("Moby Dick") is None


def test_no_pdf_returns_none():
    service, _ = _service({
        SEARCH: _response({"docs": [dict(PUBLIC_DOC, ia=["mobydick00melv"])]}),
        "https://archive.org/metadata/": _response({"metadata": {"language": "eng"}, "files": [{"name": "a.epub"}]}),
    })
    assert service.find_public_domain_book("Moby Dick") is None


def test_search_failure_returns_none():
    service, _ = _service({SEARCH: _response(error=requests.HTTPError("503"))})
    assert service.find_public_domain_book("Moby Dick") is None


def test_blank_title_skips_network():
    service, session = _service({})
    assert service.find_public_domain_book("   ") is None
    session.get.assert_not_called()
