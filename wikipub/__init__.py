"""
Session and publish client for team wikis.

Primary interface:
    from wikipub import login, logout, publish, PublishTarget

    session = login("alice", "secret", "https://igem.org/Login2")
    target = PublishTarget.for_artifact(2024, "Example", "pages/design.html", "page")
    result = publish(session, target, "pages/design.html")
    logout(session, "https://igem.org/Logout")

    # result.url is the landing page of the published artifact.
    # An unchanged artifact raises AlreadyPublished (with its history URL)
    # unless force=True.
"""

from .config import PublishTarget, WikiConfig, config_from_dict, load_credentials, load_run_config
from .errors import (
    AlreadyPublished,
    AuthError,
    ConfigError,
    ParseError,
    PublishError,
    TooManyRedirects,
    WikiError,
)
from .hasher import fingerprint
from .publisher import PublishResult, publish, publish_artifact, resolve_published_media_url
from .session import WikiSession, login, logout
from .urls import resolve_url


__all__ = [
    'login',
    'logout',
    'publish',
    'publish_artifact',
    'resolve_published_media_url',
    'resolve_url',
    'fingerprint',
    'WikiSession',
    'WikiConfig',
    'PublishTarget',
    'PublishResult',
    'config_from_dict',
    'load_run_config',
    'load_credentials',
    'WikiError',
    'AuthError',
    'ParseError',
    'PublishError',
    'AlreadyPublished',
    'ConfigError',
    'TooManyRedirects',
]
