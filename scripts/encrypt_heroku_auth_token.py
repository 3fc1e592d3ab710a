#!/usr/bin/env -S uv run python
# /// script
# requires-python = ">=3.12"
# dependencies = ["cyclopts>=2.9", "plumbum", "cryptography", "requests", "ruamel.yaml"]
# ///

"""Encrypt the Heroku auth token and add it to ``.travis.yml``.

The script reads the ``origin`` and ``heroku`` git remotes, asks the Heroku
CLI for an API token, encrypts it with the repository's Travis CI public key
using ``openssl`` and writes the Travis ``deploy`` configuration with the
encrypted token. It is meant to be run once per repository.

Prerequisites:
  - ``heroku`` CLI logged in (``heroku login``)
  - ``openssl`` on ``PATH``
  - ``origin`` remote pointing at GitHub and a ``heroku`` remote

Usage:
  ./scripts/encrypt_heroku_auth_token.py
  ./scripts/encrypt_heroku_auth_token.py verbose   # prints secrets, debugging only
  ./scripts/encrypt_heroku_auth_token.py -v        # same as --verbose

Any positional argument switches on verbose mode. Arguments starting with a
dash must be one of the documented options (``-v``, ``--verbose``, ...).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from scripts._git_remotes import (  # imported after sys.path mutation
    RepositoryIdentity,
    resolve_repository_identity,
)
from scripts._temp_files import TempFiles, temporary_token_files, write_secret
from scripts._travis_deploy_commands import (
    encrypt_token,
    fetch_heroku_token,
    read_ciphertext_base64,
)
from scripts._travis_deploy_config import DeploySettings, RawSettings, resolve_settings
from scripts._travis_deploy_errors import TravisDeployError
from scripts._travis_public_key import HttpSession, fetch_public_key
from scripts._travis_yaml import update_travis_yaml

app = App(help="Encrypt the Heroku auth token and add it to .travis.yml.")

SUCCESS_MESSAGE = "Complete! Run `git diff .travis.yml` to check."


def encrypt_heroku_token(
    identity: RepositoryIdentity,
    settings: DeploySettings,
    files: TempFiles,
    *,
    session: HttpSession | None = None,
) -> str:
    """Return the Heroku token encrypted for ``identity`` as base64 text."""

    token = fetch_heroku_token()
    if settings.verbose:
        print("Received Heroku token", token)

    key = fetch_public_key(identity.full_name, api_url=settings.api_url, session=session)
    if settings.verbose:
        print("Received Travis pubkey:\n", key)

    write_secret(files.key, key)
    write_secret(files.token, token)
    encrypt_token(files.key, files.token, files.encrypted)

    secure_value = read_ciphertext_base64(files.encrypted)
    if settings.verbose:
        print("Encrypted key base 64 encoded:", secure_value)
    return secure_value


def run(settings: DeploySettings, *, session: HttpSession | None = None) -> int:
    """Run the whole workflow and return the process exit code."""

    try:
        identity = resolve_repository_identity(
            settings.workdir,
            origin_remote=settings.origin_remote,
            heroku_remote=settings.heroku_remote,
        )
        with temporary_token_files(settings.workdir) as files:
            secure_value = encrypt_heroku_token(
                identity, settings, files, session=session
            )
            if settings.verbose:
                print("Cleaning up temporary files.")
        updated = update_travis_yaml(
            settings.travis_yml, identity.app_name, secure_value
        )
    except TravisDeployError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if updated:
        print(SUCCESS_MESSAGE)
    return 0


def configure_logging(*, verbose: bool) -> None:
    """Send log records to stderr, including debug records when verbose."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.default
def main(
    *flags: str,
    verbose: Annotated[
        bool, Parameter(name=["--verbose", "-v"], help="Print secrets while running.")
    ] = False,
    travis_yml: Annotated[Path | None, Parameter(help="Travis file to update.")] = None,
    api_url: Annotated[str | None, Parameter(help="Travis API base URL.")] = None,
    origin_remote: Annotated[str | None, Parameter(help="GitHub remote name.")] = None,
    heroku_remote: Annotated[str | None, Parameter(help="Heroku remote name.")] = None,
    workdir: Annotated[Path | None, Parameter(help="Repository checkout.")] = None,
) -> int:
    """Entry point for command-line execution.

    Any positional argument switches on verbose mode, which prints the token,
    the public key and the ciphertext. Verbose output is for debugging only.
    """

    settings = resolve_settings(
        RawSettings(
            travis_yml=travis_yml,
            api_url=api_url,
            origin_remote=origin_remote,
            heroku_remote=heroku_remote,
            workdir=workdir,
            verbose=verbose or bool(flags),
        )
    )
    configure_logging(verbose=settings.verbose)
    return run(settings)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(app())
