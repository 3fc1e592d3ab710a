"""Temporary files shared with ``openssl`` during a single run."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

KEY_FILENAME = ".tmp.key.pem"
TOKEN_FILENAME = ".tmp.token.txt"
ENCRYPTED_FILENAME = ".tmp.token.enc"


@dataclass(frozen=True, slots=True)
class TempFiles:
    """Paths of the public key, plaintext token and ciphertext files."""

    key: Path
    token: Path
    encrypted: Path

    @classmethod
    def in_directory(cls, directory: Path) -> TempFiles:
        """Return the temp file paths rooted at ``directory``.

        Examples
        --------
        >>> TempFiles.in_directory(Path("/work")).token
        PosixPath('/work/.tmp.token.txt')
        """

        return cls(
            key=directory / KEY_FILENAME,
            token=directory / TOKEN_FILENAME,
            encrypted=directory / ENCRYPTED_FILENAME,
        )

    def __iter__(self) -> Iterator[Path]:
        return iter((self.key, self.token, self.encrypted))


def write_secret(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` readable by the current user only."""

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(text)


def clean(files: TempFiles) -> None:
    """Remove whichever temp files exist; calling it again is harmless."""

    for path in files:
        if path.exists():
            path.unlink()
            logger.debug("Removed %s", path)


@contextmanager
def temporary_token_files(directory: Path) -> Iterator[TempFiles]:
    """Yield the temp file paths and remove the files on every exit path."""

    files = TempFiles.in_directory(directory)
    try:
        yield files
    finally:
        clean(files)


__all__ = [
    "ENCRYPTED_FILENAME",
    "KEY_FILENAME",
    "TOKEN_FILENAME",
    "TempFiles",
    "clean",
    "temporary_token_files",
    "write_secret",
]
