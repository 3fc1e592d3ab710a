"""Command helpers for the Heroku and OpenSSL command-line tools."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path

from plumbum import local
from plumbum.commands.processes import (
    CommandNotFound,
    ProcessExecutionError,
    ProcessTimedOut,
)

from ._travis_deploy_errors import CommandError

logger = logging.getLogger(__name__)

COMMAND_TIMEOUT_SECONDS = 120


@dataclass(slots=True)
class CommandContext:
    """Execution options for :func:`run_command`."""

    env: dict[str, str] | None = None
    timeout: int | None = COMMAND_TIMEOUT_SECONDS


def run_command(
    command: str,
    *args: str,
    context: CommandContext | None = None,
) -> str:
    """Execute an external command and return its standard output.

    Standard output and standard error are captured in full before the call
    returns.

    Examples
    --------
    >>> run_command("printf", "hello")
    'hello'
    """

    ctx = context or CommandContext()
    try:
        bound = local[command][list(args)]
        _, stdout, _ = bound.run(env=ctx.env, timeout=ctx.timeout)
    except CommandNotFound as exc:
        msg = f"Command {command!r} is not installed or not on PATH"
        raise CommandError(msg) from exc
    except ProcessTimedOut as exc:
        msg = f"Command {command!r} timed out after {ctx.timeout}s"
        raise CommandError(msg) from exc
    except ProcessExecutionError as exc:
        msg = f"Command {command!r} failed with exit code {exc.retcode}: {exc.stderr.strip()}"
        raise CommandError(msg) from exc
    return stdout


def strip_trailing_newline(value: str) -> str:
    """Remove exactly one trailing line terminator from *value*.

    Examples
    --------
    >>> strip_trailing_newline("token\\n")
    'token'
    >>> strip_trailing_newline("token\\r\\n")
    'token'
    >>> strip_trailing_newline("token")
    'token'
    """

    if value.endswith("\r\n"):
        return value[:-2]
    if value.endswith("\n"):
        return value[:-1]
    return value


def fetch_heroku_token() -> str:
    """Return the Heroku API token reported by ``heroku auth:token``.

    Raises
    ------
    CommandError
        Raised when the Heroku CLI fails or prints an empty token.
    """

    logger.debug("Requesting Heroku authentication token")
    token = strip_trailing_newline(run_command("heroku", "auth:token"))
    if not token.strip():
        msg = "heroku auth:token returned an empty token; run `heroku login` first"
        raise CommandError(msg)
    return token


def encrypt_token(key_path: Path, token_path: Path, output_path: Path) -> None:
    """RSA-encrypt ``token_path`` with the public key at ``key_path``.

    The ciphertext is written to ``output_path``. Padding is whatever
    ``openssl rsautl`` uses by default (PKCS#1 v1.5).

    Raises
    ------
    CommandError
        Raised when ``openssl`` is missing or exits non-zero.
    """

    logger.debug("Encrypting token with openssl rsautl")
    run_command(
        "openssl",
        "rsautl",
        "-encrypt",
        "-pubin",
        "-inkey",
        str(key_path),
        "-in",
        str(token_path),
        "-out",
        str(output_path),
    )


def read_ciphertext_base64(path: Path) -> str:
    """Return the contents of ``path`` encoded as base64 text."""

    return base64.b64encode(path.read_bytes()).decode("ascii")


__all__ = [
    "COMMAND_TIMEOUT_SECONDS",
    "CommandContext",
    "encrypt_token",
    "fetch_heroku_token",
    "read_ciphertext_base64",
    "run_command",
    "strip_trailing_newline",
]
