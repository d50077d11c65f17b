"""
Edit-form token harvesting.

Edit and upload forms carry hidden inputs (edit token, start time, ...)
that have to be sent back unchanged. They may change on every page view,
so they are harvested right before each submission.
"""

import logging

from bs4 import BeautifulSoup

from .errors import ParseError
from .session import WikiSession


logger = logging.getLogger(__name__)


# Buttons that turn a submission into a preview/diff instead of a save
EXCLUDED_FIELDS = frozenset({'wpPreview', 'wpDiff'})


def parse_tokens(html: str) -> dict[str, str]:
    """Collect name -> value of every named input, minus the excluded buttons."""
    if not html or not html.strip():
        raise ParseError("Empty form page")
    soup = BeautifulSoup(html, 'lxml')
    inputs = soup.find_all('input')
    if not inputs:
        raise ParseError("No form inputs found")

    tokens = {}
    for el in inputs:
        name = el.get('name')
        if not name or name in EXCLUDED_FIELDS:
            continue
        tokens[name] = el.get('value', '')
    return tokens


def harvest_tokens(session: WikiSession, edit_url: str) -> dict[str, str]:
    """
    Fetch an edit/upload form and return the fields to echo back.

    The status code is not checked: a file page that does not exist yet
    answers 404 but still carries the inputs to echo back.

    Raises:
        ParseError: if the page is empty or has no inputs
    """
    resp = session.get(edit_url)
    if resp.status_code != 200:
        logger.debug("edit form %s answered %s", edit_url, resp.status_code)
    try:
        return parse_tokens(resp.text)
    except ParseError as exc:
        raise ParseError(f"{exc} at {edit_url} (status {resp.status_code})") from exc
