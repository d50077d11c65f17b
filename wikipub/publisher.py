"""
Publish pages and files to the team wiki.

Steps for one artifact:
1. Resolve history / edit / submit URLs
2. Fingerprint the local artifact
3. Skip if the newest published version has the same fingerprint
4. Harvest the edit form's hidden tokens
5. Add the page text or file stream plus "Hash:<digest>" as edit summary
6. POST as multipart/form-data and chase the redirects to the landing page
"""

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from requests_toolbelt import MultipartEncoder

from .config import Kind, PublishTarget, WikiConfig, guess_kind
from .errors import AlreadyPublished, AuthError, ParseError, PublishError, TooManyRedirects
from .hasher import fingerprint
from .history import was_already_published
from .session import WikiSession, chase_redirects
from .tokens import harvest_tokens
from .urls import compose_file_name, resolve_url


logger = logging.getLogger(__name__)

SUMMARY_PREFIX = "Hash:"

# Links to the raw file on a File: overview page, in order of preference
MEDIA_LINK_SELECTORS = ('.fullMedia a[href]', '.fullImageLink a[href]')


@dataclass
class PublishResult:
    """Outcome of a successful publish."""
    url: str  # landing page after the redirect chase
    target: PublishTarget
    fingerprint: str
    forced: bool = False


def _file_fields(target: PublishTarget, artifact: Path, digest: str, stream: BinaryIO) -> list[tuple]:
    content_type = mimetypes.guess_type(artifact.name)[0] or 'application/octet-stream'
    return [
        ('wpUploadFile', (artifact.name, stream, content_type)),
        ('wpDestFile', compose_file_name(target.team, target.path)),
        ('wpUploadDescription', SUMMARY_PREFIX + digest),
        ('wpIgnoreWarning', '1'),
    ]


def _page_fields(target: PublishTarget, artifact: Path, digest: str, stream: BinaryIO) -> list[tuple]:
    return [
        ('wpTextbox1', stream.read()),  # raw bytes, whatever the encoding
        ('wpSummary', SUMMARY_PREFIX + digest),
    ]


_FIELD_BUILDERS = {
    'file': _file_fields,
    'page': _page_fields,
}


def build_submission(tokens: dict[str, str], fields: list[tuple]) -> MultipartEncoder:
    """
    Merge harvested tokens with the submission fields into a multipart body.

    Fields override tokens of the same name. File parts are streamed from
    their file objects when the body is sent.
    """
    merged = dict(tokens)
    merged.update(fields)
    return MultipartEncoder(fields=list(merged.items()))


def publish(
    session: WikiSession,
    target: PublishTarget,
    artifact_path: str | Path,
    force: bool = False,
    config: WikiConfig | None = None,
) -> PublishResult:
    """
    Publish a local artifact to its target.

    Args:
        session: Authenticated session
        target: Destination page or file
        artifact_path: Local file to publish
        force: Publish even if the fingerprint is unchanged
        config: Overrides session.config (site URL template, hop cap)

    Returns:
        PublishResult with the final landing URL

    Raises:
        AlreadyPublished: unchanged artifact and force is False
        PublishError: the submission was not accepted
        AuthError: the session is not logged in
        ParseError: the edit form could not be read
        OSError: the artifact cannot be read
    """
    if not session.authenticated:
        raise AuthError(f"Cannot publish with a {session.status} session", reason='not_authenticated')
    config = config or session.config
    artifact = Path(artifact_path)

    history_url = resolve_url(target, 'history', config.site_url)
    edit_url = resolve_url(target, 'edit', config.site_url)
    submit_url = resolve_url(target, 'submit', config.site_url)

    digest = fingerprint(artifact)

    if was_already_published(session, history_url, digest, target.kind):
        if not force:
            raise AlreadyPublished(history_url)
        logger.info("%s unchanged, republishing anyway", target.path)

    try:
        tokens = harvest_tokens(session, edit_url)
        with open(artifact, 'rb') as stream:
            body = build_submission(tokens, _FIELD_BUILDERS[target.kind](target, artifact, digest, stream))
            resp = session.post(submit_url, data=body, headers={'Content-Type': body.content_type})

        if not resp.is_redirect:
            logger.warning("Upload did probably fail. Status: %s... continuing", resp.status_code)
        resp, final_url, hops = chase_redirects(session, resp, config.max_redirects)
    except TooManyRedirects as exc:
        raise PublishError(f"Publishing {target.path} failed! {exc}", reason='too_many_redirects') from exc
    except requests.RequestException as exc:
        raise PublishError(f"Publishing {target.path} failed! {exc}", reason='network') from exc

    if hops == 0:
        raise PublishError(
            f"Publishing {target.path} failed! Status: {resp.status_code}",
            status=resp.status_code,
        )

    logger.info("Published %s -> %s", artifact.name, final_url)
    return PublishResult(url=final_url, target=target, fingerprint=digest, forced=force)


def publish_artifact(
    session: WikiSession,
    artifact_path: str | Path,
    year: int,
    team: str,
    kind: Kind | str = 'auto',
    offset: str = '',
    force: bool = False,
) -> PublishResult:
    """Publish a local file, deriving its target from the filename."""
    if kind == 'auto':
        kind = guess_kind(artifact_path)
    target = PublishTarget.for_artifact(year, team, artifact_path, kind, offset=offset)
    return publish(session, target, artifact_path, force=force)


def resolve_published_media_url(overview_url: str, session: WikiSession) -> str:
    """
    Find the direct media link on a file's overview (File:) page.

    Raises:
        ParseError: page unavailable or without a media link
        PublishError: network failure (reason 'network')
    """
    try:
        resp = session.get(overview_url)
    except requests.RequestException as exc:
        raise PublishError(f"Fetching {overview_url} failed! {exc}", reason='network') from exc
    if resp.status_code != 200:
        raise ParseError(f"File page unavailable at {overview_url} (status {resp.status_code})")

    soup = BeautifulSoup(resp.text, 'lxml')
    for selector in MEDIA_LINK_SELECTORS:
        link = soup.select_one(selector)
        if link is not None:
            return urljoin(overview_url, link['href'])
    raise ParseError(f"No media link on {overview_url}")
