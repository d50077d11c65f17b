"""
Exception types raised by the wiki session and publish layer.

Every failure reaches the caller as one of these (or a plain OSError when
the local artifact cannot be read). Nothing in the library exits the process.
"""


class WikiError(Exception):
    """Base class for all wikipub errors."""
    pass


class ConfigError(WikiError, ValueError):
    """Invalid target/intent combination or invalid configuration."""
    pass


class ParseError(WikiError):
    """A fetched page could not be used as the expected HTML form/page."""
    pass


class TooManyRedirects(WikiError):
    """The redirect chase exceeded its hop cap."""

    def __init__(self, max_redirects: int, last_url: str | None = None):
        self.max_redirects = max_redirects
        self.last_url = last_url
        super().__init__(f"More than {max_redirects} redirects (last: {last_url})")


class AuthError(WikiError):
    """
    Login or logout did not reach its confirmation page.

    reason is one of: 'status', 'too_many_redirects', 'network',
    'not_authenticated'.
    """

    def __init__(self, message: str, status: int | None = None, reason: str = 'status'):
        self.status = status
        self.reason = reason
        super().__init__(message)


class AlreadyPublished(WikiError):
    """The published artifact already carries the same fingerprint."""

    def __init__(self, history_url: str):
        self.history_url = history_url
        super().__init__(f"Already published: {history_url}")


class PublishError(WikiError):
    """
    Submission did not complete.

    reason is one of: 'submit_failed', 'too_many_redirects', 'network'.
    """

    def __init__(self, message: str, status: int | None = None, reason: str = 'submit_failed'):
        self.status = status
        self.reason = reason
        super().__init__(message)
