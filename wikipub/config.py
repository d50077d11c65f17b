"""
Configuration, publish targets and credential loading for the wiki client.
"""

import dataclasses
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Mapping

from .errors import ConfigError


PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "configs" / "defaults.yaml"

# Site layout
SITE_URL_TEMPLATE = "https://{year}.igem.org"
UPLOAD_PAGE = "Special:Upload"
LOGIN_URL = "https://igem.org/Login2"
LOGOUT_URL = "https://igem.org/Logout"

# Landing-page markers that confirm a finished handshake
LOGIN_MARKER = "Login_Confirmed"
LOGOUT_MARKER = "Logout_Confirmed"

USER_AGENT = "wikipub/0.3 (python-requests)"

# Environment variables read by load_credentials()
USERNAME_ENV = "WIKI_USERNAME"
PASSWORD_ENV = "WIKI_PASSWORD"

# Extensions published as wiki pages when the kind is 'auto'
PAGE_EXTENSIONS = ('.html', '.htm', '.txt', '.wiki')

Kind = Literal['page', 'file']
KINDS = ('page', 'file')


@dataclass
class WikiConfig:
    """Configuration for session and publish operations."""

    # Transport
    timeout: float = 30.0
    max_redirects: int = 10  # hop cap for every manual redirect chase
    user_agent: str = USER_AGENT

    # Endpoints
    site_url: str = SITE_URL_TEMPLATE  # formatted with year=
    login_url: str = LOGIN_URL
    logout_url: str = LOGOUT_URL
    login_marker: str = LOGIN_MARKER
    logout_marker: str = LOGOUT_MARKER

    # Defaults for the CLI (targets still carry their own year/team)
    year: int | None = None
    team: str | None = None
    headers: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PublishTarget:
    """Destination artifact on the wiki."""
    year: int
    team: str
    path: str  # file: base filename; page: path below Team:<team>/
    kind: Kind

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ConfigError(f"Unknown artifact kind: {self.kind!r}")
        if not self.team:
            raise ConfigError("Team name is required")
        if not self.path:
            raise ConfigError("Artifact path is required")
        if self.kind == 'file' and '/' in self.path:
            raise ConfigError(f"File targets take a bare filename, not {self.path!r}")

    @classmethod
    def for_artifact(
        cls,
        year: int,
        team: str,
        artifact_path: str | Path,
        kind: Kind,
        offset: str = '',
    ) -> 'PublishTarget':
        """
        Derive the target of a local artifact.

        Files keep their base filename. Pages are named after the filename
        up to the first '.', placed below the optional offset
        (e.g. offset "Project", "design.html" -> "Project/design").
        """
        name = Path(artifact_path).name
        if kind == 'page':
            name = name.split('.')[0]
            offset = offset.strip('/')
            if offset:
                name = f"{offset}/{name}"
        return cls(year=int(year), team=team, path=name, kind=kind)


def guess_kind(artifact_path: str | Path) -> Kind:
    """Pages for markup/text extensions, files for everything else."""
    if Path(artifact_path).suffix.lower() in PAGE_EXTENSIONS:
        return 'page'
    return 'file'


def load_run_config(path: str | Path) -> dict:
    """Load a run configuration from JSON or YAML."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Run config not found: {path}")

    # Empty files (e.g. /dev/null) mean "no overrides"
    content = p.read_text(encoding="utf-8").strip()
    if not content:
        return {}

    if p.suffix.lower() in (".yaml", ".yml"):
        import yaml
        try:
            result = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc

    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ConfigError(f"Run config must be a mapping: {path}")
    return result


def config_from_dict(data: Mapping | None) -> WikiConfig:
    """Build a WikiConfig, rejecting keys it does not know."""
    if not data:
        return WikiConfig()
    known = {f.name for f in dataclasses.fields(WikiConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    config = WikiConfig(**data)
    if config.max_redirects < 0:
        raise ConfigError("max_redirects must be >= 0")
    if '{year}' not in config.site_url:
        raise ConfigError("site_url must contain a {year} placeholder")
    return config


def load_credentials(
    username: str | None = None,
    password: str | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[str, str]:
    """Explicit values win, then WIKI_USERNAME / WIKI_PASSWORD."""
    if env is None:
        env = os.environ
    username = username or env.get(USERNAME_ENV)
    password = password or env.get(PASSWORD_ENV)
    if not username:
        raise ConfigError(f"No username given (set {USERNAME_ENV} or pass --username)")
    if not password:
        raise ConfigError(f"No password given (set {PASSWORD_ENV})")
    return username, password
