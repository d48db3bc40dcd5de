# bookverse/services/catalog_service.py
import logging
from typing import Optional, Dict, Any, List, Tuple
from urllib.parse import quote

import requests
from flask import Flask

OPEN_LIBRARY_SEARCH_URL = "https://openlibrary.org/search.json"
ARCHIVE_METADATA_URL = "https://archive.org/metadata/{identifier}"
ARCHIVE_DOWNLOAD_URL = "https://archive.org/download/{identifier}/{filename}"
COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-M.jpg"

ENGLISH_CODES = ('eng', 'english')


class CatalogService:
    """
    Finds a readable public-domain copy of a book.

    1. OpenLibrary search: first doc with public ebook access, Internet Archive
       identifiers and a title containing the query.
    2. Internet Archive metadata: first identifier whose scan is in English and
       ships a .pdf file.

    Every failure (no match, network error, odd payload) ends in None.
    """

    def __init__(self, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def init_app(self, app: Flask):
        self.timeout = app.config.get('CATALOG_REQUEST_TIMEOUT', self.timeout)

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _find_candidate(self, title: str) -> Optional[Dict[str, Any]]:
        data = self._get_json(OPEN_LIBRARY_SEARCH_URL, params={"q": f'title:"{title}"', "language": "eng"})
        wanted = title.lower()
        for doc in data.get('docs') or []:
            doc_title = (doc.get('title') or '').lower()
            if doc.get('ebook_access') == 'public' and doc.get('ia') and wanted in doc_title:
                return doc
        return None

    def _find_pdf(self, identifiers: List[str]) -> Optional[Tuple[str, str]]:
        """(identifier, download url) of the first English scan with a PDF."""
        for identifier in identifiers:
            try:
                metadata = self._get_json(ARCHIVE_METADATA_URL.format(identifier=identifier))
            except (requests.RequestException, ValueError) as e:
                logging.info(f"Skipping archive identifier {identifier}: {e}")
                continue

            language = (metadata.get('metadata') or {}).get('language') or ''
            if isinstance(language, list):
                language = language[0] if language else ''
            if language.lower() not in ENGLISH_CODES:
                continue

            pdf_file = next(
                (f for f in metadata.get('files') or [] if str(f.get('name', '')).lower().endswith('.pdf')),
                None
            )
            if pdf_file:
                return identifier, ARCHIVE_DOWNLOAD_URL.format(identifier=identifier, filename=quote(pdf_file["name"]))
        return None

    def find_public_domain_book(self, title: str) -> Optional[Dict[str, Any]]:
        """
        :return: {"title", "author", "publish_year", "cover_url", "pdf_url", "archive_id"} or None
        """
        title = (title or '').strip()
        if not title:
            return None

        logging.info(f"Searching a public domain PDF for '{title}'")
        try:
            candidate = self._find_candidate(title)
            if not candidate:
                logging.info(f"No public domain edition found for '{title}'")
                return None

            found = self._find_pdf(candidate["ia"])
            if not found:
                logging.info(f"No verifiable English PDF scan for '{title}'")
                return None
        except (requests.RequestException, ValueError) as e:
            logging.error(f"Catalog lookup failed for '{title}': {e}", exc_info=True)
            return None

        authors = candidate.get('author_name') or []
        cover_id = candidate.get('cover_i')
        return {
            "title": candidate.get('title') or title,
            "author": ', '.join(authors) if authors else None,
            "publish_year": candidate.get('first_publish_year'),
            "cover_url": COVER_URL.format(cover_id=cover_id) if cover_id else None,
            "pdf_url": found[1],
            "archive_id": found[0],
        }
