"""Shared error types for the Heroku token encryption helper.

Exceptions
----------
TravisDeployError
RemoteNotFoundError
GitUrlError
CommandError
PublicKeyFetchError
TravisConfigError
"""

from __future__ import annotations


class TravisDeployError(Exception):
    """Base error for the Travis deploy setup workflow."""


class RemoteNotFoundError(TravisDeployError):
    """Raised when a named git remote is not configured."""


class GitUrlError(TravisDeployError):
    """Raised when a git remote URL cannot be parsed."""


class CommandError(TravisDeployError):
    """Raised when an external command is missing or fails."""


class PublicKeyFetchError(TravisDeployError):
    """Raised when the Travis public key cannot be retrieved."""


class TravisConfigError(TravisDeployError):
    """Raised when the Travis configuration file is missing or malformed."""
