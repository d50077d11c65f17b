#!/usr/bin/env python3
"""
Publish pages and files to a team wiki.

Logs in once, publishes every given path (unchanged artifacts are skipped
unless --force), then logs out.

Usage:
    WIKI_PASSWORD=... python scripts/publish.py --year 2024 --team Example \\
        --username alice pages/index.html images/logo.png
"""

import argparse
import getpass
import logging
import os
import sys
from pathlib import Path

# Add parent dir to path for wikipub module
sys.path.insert(0, str(Path(__file__).parent.parent))

from wikipub.config import (
    DEFAULT_CONFIG_FILE,
    PASSWORD_ENV,
    PublishTarget,
    config_from_dict,
    guess_kind,
    load_credentials,
    load_run_config,
)
from wikipub.errors import AlreadyPublished, ConfigError, WikiError
from wikipub.publisher import publish, resolve_published_media_url
from wikipub.session import login, logout
from wikipub.urls import resolve_url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish pages and files to a team wiki")
    parser.add_argument("paths", nargs="+", help="Files to publish")
    parser.add_argument("--year", type=int, help="Wiki year (e.g., 2024)")
    parser.add_argument("--team", help="Team name as used in Team:<name> pages")
    parser.add_argument("--offset", default="", help="Page path prefix below Team:<name>/")
    parser.add_argument("--kind", choices=["auto", "page", "file"], default="auto",
                        help="Publish as page or file (auto: by extension)")
    parser.add_argument("--force", action="store_true",
                        help="Publish even if the wiki already has identical content")
    parser.add_argument("--media-url", action="store_true",
                        help="Print the direct media link of each published file")
    parser.add_argument("--username", help="Account name (default: $WIKI_USERNAME)")
    parser.add_argument("--run-config", help="Path to JSON/YAML run config (overrides defaults)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def load_config(run_config: str | None):
    cfg = {}
    if DEFAULT_CONFIG_FILE.exists():
        cfg = load_run_config(DEFAULT_CONFIG_FILE)
    if run_config:
        cfg.update(load_run_config(run_config))
    return config_from_dict(cfg)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.run_config)
        year = args.year or config.year
        team = args.team or config.team
        if not year or not team:
            raise ConfigError("--year and --team are required (or set them in the run config)")
        password = os.environ.get(PASSWORD_ENV) or getpass.getpass("Wiki password: ")
        username, password = load_credentials(args.username, password)
        targets = [
            (path, PublishTarget.for_artifact(
                year, team, path,
                guess_kind(path) if args.kind == "auto" else args.kind,
                offset=args.offset,
            ))
            for path in args.paths
        ]
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Error: {exc}")
        return 2

    try:
        session = login(username, password, config=config)
    except WikiError as exc:
        print(f"Error: {exc}")
        return 2

    failed = 0
    try:
        for path, target in targets:
            try:
                result = publish(session, target, path, force=args.force)
            except AlreadyPublished as exc:
                print(f"  [skip] {path} unchanged: {exc.history_url}")
                continue
            except (WikiError, OSError) as exc:
                print(f"  [fail] {path}: {exc}")
                failed += 1
                continue

            print(f"  [ok] {path} -> {result.url}")
            if args.media_url and target.kind == "file":
                overview = resolve_url(target, "edit", config.site_url)
                try:
                    print(f"       media: {resolve_published_media_url(overview, session)}")
                except WikiError as exc:
                    print(f"       media: unavailable ({exc})")
    finally:
        try:
            logout(session)
        except WikiError as exc:
            print(f"Warning: {exc}")

    print(f"Done: {len(targets) - failed}/{len(targets)} artifacts ok")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
