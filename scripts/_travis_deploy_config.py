"""Resolve settings for the Heroku token encryption helper.

Each setting is taken from the CLI parameter when given, otherwise from its
environment variable, otherwise from a default.
"""

from __future__ import annotations

import os
from collections import abc as cabc
from dataclasses import dataclass
from pathlib import Path

from ._travis_public_key import DEFAULT_TRAVIS_API_URL


@dataclass(frozen=True, slots=True)
class InputResolution:
    """Configuration for resolving an input from multiple sources."""

    env_key: str
    default: str | Path | None = None
    as_path: bool = False


TRAVIS_YML = InputResolution("TRAVIS_YML", default=Path(".travis.yml"), as_path=True)
API_URL = InputResolution("TRAVIS_API_URL", default=DEFAULT_TRAVIS_API_URL)
ORIGIN_REMOTE = InputResolution("GIT_ORIGIN_REMOTE", default="origin")
HEROKU_REMOTE = InputResolution("GIT_HEROKU_REMOTE", default="heroku")
WORKDIR = InputResolution("TRAVIS_DEPLOY_WORKDIR", as_path=True)
VERBOSE = InputResolution("TRAVIS_DEPLOY_VERBOSE")


@dataclass(frozen=True, slots=True)
class RawSettings:
    """Unresolved CLI values; ``None`` means "not supplied"."""

    travis_yml: Path | None = None
    api_url: str | None = None
    origin_remote: str | None = None
    heroku_remote: str | None = None
    workdir: Path | None = None
    verbose: bool | None = None


@dataclass(frozen=True, slots=True)
class DeploySettings:
    """Resolved settings for a single run."""

    travis_yml: Path
    api_url: str
    origin_remote: str
    heroku_remote: str
    workdir: Path
    verbose: bool = False


def resolve_input(
    param_value: str | Path | None,
    resolution: InputResolution,
    env: cabc.Mapping[str, str],
) -> str | Path | None:
    """Resolve input from parameter, environment variable, or default.

    Examples
    --------
    >>> resolve_input(None, InputResolution("X", default="d"), {"X": "env"})
    'env'
    >>> resolve_input("cli", InputResolution("X", default="d"), {"X": "env"})
    'cli'
    """

    if param_value is not None:
        return param_value
    env_value = env.get(resolution.env_key)
    if env_value is not None and env_value.strip():
        return Path(env_value) if resolution.as_path else env_value
    return resolution.default


def parse_bool(value: str | None, *, default: bool = False) -> bool:
    """Parse a boolean string value.

    Examples
    --------
    >>> parse_bool("yes")
    True
    >>> parse_bool(None)
    False
    """

    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")


def resolve_settings(
    raw: RawSettings,
    env: cabc.Mapping[str, str] | None = None,
) -> DeploySettings:
    """Build :class:`DeploySettings` from CLI values and the environment.

    A relative ``travis_yml`` is interpreted against ``workdir``.
    """

    env = os.environ if env is None else env
    workdir = Path(resolve_input(raw.workdir, WORKDIR, env) or Path.cwd())
    travis_yml = Path(resolve_input(raw.travis_yml, TRAVIS_YML, env))
    if not travis_yml.is_absolute():
        travis_yml = workdir / travis_yml

    if raw.verbose:
        verbose = True
    else:
        verbose = parse_bool(env.get(VERBOSE.env_key))

    return DeploySettings(
        travis_yml=travis_yml,
        api_url=str(resolve_input(raw.api_url, API_URL, env)),
        origin_remote=str(resolve_input(raw.origin_remote, ORIGIN_REMOTE, env)),
        heroku_remote=str(resolve_input(raw.heroku_remote, HEROKU_REMOTE, env)),
        workdir=workdir,
        verbose=verbose,
    )


__all__ = [
    "DeploySettings",
    "InputResolution",
    "RawSettings",
    "parse_bool",
    "resolve_input",
    "resolve_settings",
]
