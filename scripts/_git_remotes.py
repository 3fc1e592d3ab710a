"""Resolve repository identifiers from configured git remotes.

The GitHub repository full name (``owner/repo``) comes from the ``origin``
remote and the Heroku application name from the ``heroku`` remote.

Examples
--------
>>> parse_git_url("git@github.com:octo/site.git").full_name
'octo/site'
>>> parse_git_url("https://git.heroku.com/octo-site.git").name
'octo-site'
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

from ._travis_deploy_commands import run_command
from ._travis_deploy_errors import GitUrlError, RemoteNotFoundError

logger = logging.getLogger(__name__)

# user@host:path, the scp-like syntax git accepts for SSH remotes.
_SCP_LIKE_URL = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>.+)$")
_REMOTE_LINE = re.compile(r"^(?P<name>\S+)\s+(?P<url>\S+)\s+\((?P<kind>fetch|push)\)$")


@dataclass(frozen=True, slots=True)
class GitRemote:
    """A named git remote."""

    name: str
    fetch_url: str
    push_url: str | None = None


@dataclass(frozen=True, slots=True)
class GitUrl:
    """Components of a parsed git remote URL."""

    host: str
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        """Return ``owner/name``, or just ``name`` for single-segment paths."""

        return f"{self.owner}/{self.name}" if self.owner else self.name


@dataclass(frozen=True, slots=True)
class RepositoryIdentity:
    """Identifiers derived from the git remotes for a single run."""

    full_name: str
    app_name: str


def parse_git_url(url: str) -> GitUrl:
    """Split a git remote URL into host, owner and repository name.

    Parameters
    ----------
    url : str
        Remote URL in scp-like, ``ssh://``, ``git://`` or ``http(s)://`` form.

    Returns
    -------
    GitUrl
        Parsed URL components.

    Raises
    ------
    GitUrlError
        Raised when the URL has no repository path.

    Examples
    --------
    >>> parse_git_url("ssh://git@github.com:22/octo/site").full_name
    'octo/site'
    """

    candidate = url.strip()
    if "://" in candidate:
        parts = urlsplit(candidate)
        host = parts.hostname or ""
        path = parts.path
    else:
        match = _SCP_LIKE_URL.match(candidate)
        if match is None:
            host, path = "", candidate
        else:
            host, path = match.group("host"), match.group("path")

    segments = [segment for segment in path.strip("/").split("/") if segment]
    if not segments:
        msg = f"Unable to find a repository path in git URL {url!r}"
        raise GitUrlError(msg)

    name = segments[-1].removesuffix(".git")
    if not name:
        msg = f"Unable to find a repository name in git URL {url!r}"
        raise GitUrlError(msg)
    owner = segments[-2] if len(segments) > 1 else ""
    return GitUrl(host=host, owner=owner, name=name)


def parse_remotes(output: str) -> list[GitRemote]:
    """Parse ``git remote -v`` output into remotes, preserving order.

    Examples
    --------
    >>> parse_remotes("origin\\tgit@github.com:o/r.git (fetch)\\n"
    ...               "origin\\tgit@github.com:o/r.git (push)\\n")[0].fetch_url
    'git@github.com:o/r.git'
    """

    fetch_urls: dict[str, str] = {}
    push_urls: dict[str, str] = {}
    for line in output.splitlines():
        match = _REMOTE_LINE.match(line.strip())
        if match is None:
            continue
        target = fetch_urls if match.group("kind") == "fetch" else push_urls
        target.setdefault(match.group("name"), match.group("url"))

    names = list(dict.fromkeys([*fetch_urls, *push_urls]))
    return [
        GitRemote(
            name=name,
            fetch_url=fetch_urls.get(name) or push_urls[name],
            push_url=push_urls.get(name),
        )
        for name in names
    ]


def list_remotes(cwd: Path) -> list[GitRemote]:
    """Return the remotes configured for the repository at ``cwd``."""

    return parse_remotes(run_command("git", "-C", str(cwd), "remote", "-v"))


def get_remote_url(name: str, remotes: Iterable[GitRemote]) -> str:
    """Return the fetch URL of the remote called ``name``.

    Raises
    ------
    RemoteNotFoundError
        Raised when no remote has that name.
    """

    for remote in remotes:
        if remote.name == name:
            return remote.fetch_url
    logger.error("It appears that the remote %s does not exist.", name)
    msg = f"git remote {name!r} is not configured (add it with `git remote add {name} <url>`)"
    raise RemoteNotFoundError(msg)


def resolve_repository_identity(
    cwd: Path,
    *,
    origin_remote: str = "origin",
    heroku_remote: str = "heroku",
) -> RepositoryIdentity:
    """Derive the repository full name and Heroku app name from remotes."""

    remotes = list_remotes(cwd)
    origin = parse_git_url(get_remote_url(origin_remote, remotes))
    heroku = parse_git_url(get_remote_url(heroku_remote, remotes))
    if not origin.owner:
        msg = f"Remote {origin_remote!r} does not point at an owner/repository path"
        raise GitUrlError(msg)
    return RepositoryIdentity(full_name=origin.full_name, app_name=heroku.name)


__all__ = [
    "GitRemote",
    "GitUrl",
    "RepositoryIdentity",
    "get_remote_url",
    "list_remotes",
    "parse_git_url",
    "parse_remotes",
    "resolve_repository_identity",
]
