"""Unit tests for git remote parsing and repository identity resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts._git_remotes import (
    GitRemote,
    RepositoryIdentity,
    get_remote_url,
    parse_git_url,
    parse_remotes,
    resolve_repository_identity,
)
from scripts._travis_deploy_errors import GitUrlError, RemoteNotFoundError

REMOTE_OUTPUT = (
    "heroku\thttps://git.heroku.com/octo-site.git (fetch)\n"
    "heroku\thttps://git.heroku.com/octo-site.git (push)\n"
    "origin\tgit@github.com:octo/site.git (fetch)\n"
    "origin\tgit@github.com:octo/site.git (push)\n"
)


@pytest.mark.parametrize(
    ("url", "full_name", "name"),
    [
        ("git@github.com:octo/site.git", "octo/site", "site"),
        ("https://github.com/octo/site", "octo/site", "site"),
        ("https://github.com/octo/site.git/", "octo/site", "site"),
        ("ssh://git@github.com:22/octo/site.git", "octo/site", "site"),
        ("git://github.com/octo/site.git", "octo/site", "site"),
        ("https://git.heroku.com/octo-site.git", "octo-site", "octo-site"),
    ],
)
def test_parse_git_url_variants(url: str, full_name: str, name: str) -> None:
    parsed = parse_git_url(url)
    assert parsed.full_name == full_name, f"Unexpected full name for {url}"
    assert parsed.name == name, f"Unexpected repository name for {url}"


def test_parse_git_url_records_host() -> None:
    assert parse_git_url("git@github.com:octo/site.git").host == "github.com"
    assert parse_git_url("https://git.heroku.com/octo-site.git").host == "git.heroku.com"


def test_parse_git_url_rejects_empty_path() -> None:
    with pytest.raises(GitUrlError, match="repository path"):
        parse_git_url("https://github.com/")


def test_parse_remotes_pairs_fetch_and_push() -> None:
    remotes = parse_remotes(REMOTE_OUTPUT)
    assert [remote.name for remote in remotes] == ["heroku", "origin"], "Order preserved"
    assert remotes[1] == GitRemote(
        name="origin",
        fetch_url="git@github.com:octo/site.git",
        push_url="git@github.com:octo/site.git",
    ), "Origin remote should carry both URLs"


def test_get_remote_url_missing_remote_raises(caplog: pytest.LogCaptureFixture) -> None:
    remotes = parse_remotes(REMOTE_OUTPUT)
    with pytest.raises(RemoteNotFoundError, match="'upstream'"):
        get_remote_url("upstream", remotes)
    assert "remote upstream does not exist" in caplog.text, "Diagnostic should be logged"


def test_resolve_repository_identity(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: list[tuple[str, ...]] = []

    def fake_run_command(command: str, *args: str, **_kwargs: object) -> str:
        captured.append((command, *args))
        return REMOTE_OUTPUT

    monkeypatch.setattr("scripts._git_remotes.run_command", fake_run_command)

    identity = resolve_repository_identity(tmp_path)

    assert identity == RepositoryIdentity(full_name="octo/site", app_name="octo-site")
    assert captured == [("git", "-C", str(tmp_path), "remote", "-v")], "git remote -v expected"


def test_resolve_repository_identity_custom_remote_names(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    output = (
        "github\thttps://github.com/octo/other.git (fetch)\n"
        "staging\thttps://git.heroku.com/octo-staging.git (fetch)\n"
    )
    monkeypatch.setattr("scripts._git_remotes.run_command", lambda *_a, **_k: output)

    identity = resolve_repository_identity(
        tmp_path, origin_remote="github", heroku_remote="staging"
    )

    assert identity.full_name == "octo/other", "Custom origin remote should be used"
    assert identity.app_name == "octo-staging", "Custom heroku remote should be used"


def test_resolve_repository_identity_without_heroku_remote(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    output = "origin\tgit@github.com:octo/site.git (fetch)\n"
    monkeypatch.setattr("scripts._git_remotes.run_command", lambda *_a, **_k: output)

    with pytest.raises(RemoteNotFoundError, match="'heroku'"):
        resolve_repository_identity(tmp_path)
