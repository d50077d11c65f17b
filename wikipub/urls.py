"""
URL layout of the team wiki.

    resolve_url(target, 'history')   # where the fingerprint is looked up
    resolve_url(target, 'edit')      # form that carries the edit tokens
    resolve_url(target, 'submit')    # where the multipart form is posted

All results are pure functions of the target and the site template.
"""

from typing import Iterable

from .config import SITE_URL_TEMPLATE, UPLOAD_PAGE, PublishTarget
from .errors import ConfigError


INTENTS = ('edit', 'history', 'submit')


def compose_file_name(team: str, filename: str) -> str:
    """Team-scoped name under which a file is stored ("T--<team>--<file>")."""
    return f"T--{team}--{filename}"


def site_root(year: int, site_url: str = SITE_URL_TEMPLATE) -> str:
    return site_url.format(year=year).rstrip('/')


def _file_url(target: PublishTarget, intents: frozenset, root: str) -> str:
    if 'submit' in intents:
        return f"{root}/{UPLOAD_PAGE}"
    # File history lives on the file's own page
    return f"{root}/File:{compose_file_name(target.team, target.path)}"


def _page_url(target: PublishTarget, intents: frozenset, root: str) -> str:
    page = f"{root}/Team:{target.team}/{target.path}"
    if intents == {'history', 'submit'}:
        raise ConfigError("Cannot submit and view history at the same time")
    if intents == {'submit'}:
        return f"{page}?action=submit"
    if intents == {'history'}:
        return f"{page}?action=history"
    if intents == {'edit'}:
        return f"{page}?action=edit"
    raise ConfigError(f"Unresolvable page intent: {sorted(intents)}")


_RESOLVERS = {
    'file': _file_url,
    'page': _page_url,
}


def resolve_url(
    target: PublishTarget,
    intent: str | Iterable[str],
    site_url: str = SITE_URL_TEMPLATE,
) -> str:
    """
    Map a target and intent to its request URL.

    Args:
        target: Destination artifact
        intent: 'edit', 'history', 'submit', or a collection of them
        site_url: Site template with a {year} placeholder

    Returns:
        Absolute URL

    Raises:
        ConfigError: for a page asked to submit and show history at once,
            or for intents/kinds outside the table above
    """
    intents = frozenset([intent] if isinstance(intent, str) else intent)
    if not intents or not intents <= set(INTENTS):
        raise ConfigError(f"Unknown intent: {intent!r}")
    resolver = _RESOLVERS.get(target.kind)
    if resolver is None:
        raise ConfigError(f"Unknown artifact kind: {target.kind!r}")
    return resolver(target, intents, site_root(target.year, site_url))
