"""
Authenticated wiki session with manual redirect handling.

The login chain sets cookies on several hops, and each hop needs the cookies
of the one before it. Redirects are therefore never followed by requests;
chase_redirects() walks them one GET at a time through the same cookie jar.

Usage:
    from wikipub.session import login, logout

    session = login(username, password, config.login_url, config)
    ...
    logout(session, config.logout_url)
"""

import logging
import re
from http.cookiejar import DefaultCookiePolicy, request_host
from typing import Literal
from urllib.parse import urljoin

import requests
from publicsuffixlist import PublicSuffixList
from requests.cookies import RequestsCookieJar

from .config import WikiConfig
from .errors import AuthError, TooManyRedirects


logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')

SessionStatus = Literal["unauthenticated", "authenticated", "closed"]


class PublicSuffixCookiePolicy(DefaultCookiePolicy):
    """
    Cookie policy that refuses Domain= attributes naming a public suffix.

    A host such as evil.github.io may not set cookies for all of .github.io.
    A cookie for a suffix that is itself the request host is still accepted.
    """

    def __init__(self, psl: PublicSuffixList | None = None, **kwargs):
        super().__init__(**kwargs)
        self.psl = psl or _public_suffixes()

    def set_ok_domain(self, cookie, request) -> bool:
        if not super().set_ok_domain(cookie, request):
            return False
        if not cookie.domain_specified:
            return True
        domain = cookie.domain.lstrip('.').lower()
        if self.psl.is_public(domain) and domain != request_host(request):
            logger.debug("cookie %s rejected: %s is a public suffix", cookie.name, domain)
            return False
        return True


_PSL = None


def _public_suffixes() -> PublicSuffixList:
    global _PSL
    if _PSL is None:
        _PSL = PublicSuffixList()
    return _PSL


def _new_transport(config: WikiConfig) -> requests.Session:
    http = requests.Session()
    http.cookies = RequestsCookieJar(policy=PublicSuffixCookiePolicy())
    http.max_redirects = 0
    http.headers['User-Agent'] = config.user_agent
    http.headers.update(config.headers)
    return http


class WikiSession:
    """
    Cookie session plus the transport every wiki request goes through.

    All requests are sent with allow_redirects=False; use chase_redirects()
    to follow a redirect chain. Not safe for concurrent use.
    """

    def __init__(self, config: WikiConfig | None = None, http: requests.Session | None = None):
        self.config = config or WikiConfig()
        self.http = http if http is not None else _new_transport(self.config)
        self.status: SessionStatus = 'unauthenticated'

    @property
    def authenticated(self) -> bool:
        return self.status == 'authenticated'

    @property
    def cookies(self):
        return self.http.cookies

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs['allow_redirects'] = False
        kwargs.setdefault('timeout', self.config.timeout)
        return self.http.request(method, url, **kwargs)

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self.request('POST', url, **kwargs)

    def close(self):
        """Release the transport. Does not log out."""
        self.http.close()
        self.status = 'closed'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        return f"WikiSession(status={self.status!r})"


def clean_location(location: str) -> str:
    """Remove whitespace the wiki sometimes leaves inside Location headers."""
    return _WHITESPACE.sub('', location)


def chase_redirects(
    session: WikiSession,
    response: requests.Response,
    max_redirects: int | None = None,
) -> tuple[requests.Response, str, int]:
    """
    Follow a redirect chain by hand, one GET per hop.

    Args:
        session: Session whose cookie jar collects each hop's cookies
        response: First response of the chain
        max_redirects: Hop cap (defaults to session.config.max_redirects)

    Returns:
        Tuple of (final response, final URL, number of hops). The final URL
        is the last redirect target, or the response URL if there was none.

    Raises:
        TooManyRedirects: if the chain is longer than max_redirects
    """
    if max_redirects is None:
        max_redirects = session.config.max_redirects

    final_url = None
    hops = 0
    while response.is_redirect:
        if hops >= max_redirects:
            raise TooManyRedirects(max_redirects, final_url)
        location = clean_location(response.headers['Location'])
        final_url = urljoin(response.url or '', location)
        logger.debug("redirect %d: %s -> %s", hops + 1, response.status_code, final_url)
        response = session.get(final_url)
        hops += 1

    return response, final_url or response.url or '', hops


def _handshake(
    session: WikiSession,
    method: str,
    url: str,
    marker: str,
    action: str,
    **kwargs,
) -> requests.Response:
    """Send the first request of a login/logout chain and confirm its landing page."""
    try:
        resp = session.request(method, url, **kwargs)
        resp, final_url, hops = chase_redirects(session, resp)
    except TooManyRedirects as exc:
        raise AuthError(f"{action} failed! {exc}", reason='too_many_redirects') from exc
    except requests.RequestException as exc:
        raise AuthError(f"{action} failed! {exc}", reason='network') from exc

    if resp.status_code == 200 and marker in final_url:
        logger.debug("%s confirmed after %d redirects at %s", action, hops, final_url)
        return resp
    raise AuthError(f"{action} failed! Status: {resp.status_code}", status=resp.status_code)


def login(
    username: str,
    password: str,
    login_url: str | None = None,
    config: WikiConfig | None = None,
    http: requests.Session | None = None,
) -> WikiSession:
    """
    Log in and return an authenticated session.

    Args:
        username: Account name
        password: Account password
        login_url: First link of the login chain (defaults to config.login_url)
        config: Session configuration
        http: Transport to use instead of a fresh requests.Session

    Raises:
        AuthError: if the chain does not end on a 200 confirmation page
    """
    config = config or WikiConfig()
    session = WikiSession(config=config, http=http)
    form = {
        'return_to': '',
        'username': username,
        'password': password,
        'Login': 'Login',  # name of the form's submit button
    }
    try:
        _handshake(session, 'POST', login_url or config.login_url, config.login_marker, 'Login', data=form)
    except AuthError:
        session.close()
        raise

    session.status = 'authenticated'
    logger.info("Logged in as %s", username)
    return session


def logout(session: WikiSession, logout_url: str | None = None) -> None:
    """
    Log out and close the session.

    Raises:
        AuthError: if the session is not logged in, or the chain does not
            end on a 200 confirmation page
    """
    if not session.authenticated:
        raise AuthError(f"Cannot log out a {session.status} session", reason='not_authenticated')
    config = session.config
    _handshake(session, 'GET', logout_url or config.logout_url, config.logout_marker, 'Logout')
    session.close()
    logger.info("Logged out")
