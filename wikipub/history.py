"""
Published-fingerprint lookup on history pages.

Uploads made by this client carry "Hash:<digest>" in their edit summary.
The newest history entry is scraped and compared with the local digest:

- files: the file page's upload table, second row (first data row), last cell
- pages: ?action=history, first entry of ul#pagehistory, span.comment
"""

import logging

import requests
from bs4 import BeautifulSoup

from .config import Kind
from .session import WikiSession


logger = logging.getLogger(__name__)


def _file_history_comment(soup: BeautifulSoup) -> str:
    rows = soup.find_all('tr')
    if len(rows) < 2:
        return ''
    cells = rows[1].find_all('td')
    return cells[-1].get_text() if cells else ''


def _page_history_comment(soup: BeautifulSoup) -> str:
    history = soup.find('ul', id='pagehistory')
    if history is None:
        return ''
    newest = history.find('li')
    if newest is None:
        return ''
    comment = newest.find('span', class_='comment')
    return comment.get_text() if comment else ''


_EXTRACTORS = {
    'file': _file_history_comment,
    'page': _page_history_comment,
}


def sanitize_comment(raw: str) -> str:
    """
    Reduce an edit summary to the digest it carries.

    "(Hash: abcef123)" -> "abcef123". Comments without a digest come out as
    junk, which is fine since the result is only compared for equality.
    """
    cleaned = raw.replace('(', '').replace(')', '').replace(' ', '').strip()
    return cleaned.split(':')[-1]


def extract_fingerprint(html: str, kind: Kind) -> str:
    """Pull the sanitized fingerprint of the newest history entry out of a page."""
    soup = BeautifulSoup(html, 'lxml')
    return sanitize_comment(_EXTRACTORS[kind](soup))


def was_already_published(
    session: WikiSession,
    history_url: str,
    expected: str,
    kind: Kind,
) -> bool:
    """
    Check whether the newest published version has the given fingerprint.

    Any failure to read the history (network error, non-200, unparseable
    page) counts as "not published yet".
    """
    try:
        resp = session.get(history_url)
    except requests.RequestException as exc:
        logger.debug("history lookup failed for %s: %s", history_url, exc)
        return False

    if resp.status_code != 200:
        logger.debug("no history at %s (status %s)", history_url, resp.status_code)
        return False

    try:
        published = extract_fingerprint(resp.text, kind)
    except Exception as exc:
        logger.debug("unreadable history page %s: %s", history_url, exc)
        return False

    return published == expected
