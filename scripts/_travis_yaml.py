"""Insert Heroku deployment settings into ``.travis.yml``.

The document is round-tripped with ``ruamel.yaml`` so existing comments,
quoting, key order and indentation survive the edit.

Examples
--------
>>> import tempfile
>>> from pathlib import Path
>>> with tempfile.TemporaryDirectory() as tmp:
...     path = Path(tmp) / ".travis.yml"
...     _ = path.write_text("language: node_js\\n")
...     update_travis_yaml(path, "octo-site", "c2VjcmV0")
True
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML, YAMLError
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.util import load_yaml_guess_indent

from ._travis_deploy_errors import TravisConfigError

logger = logging.getLogger(__name__)

IDEMPOTENCE_KEY = "before_deploy"
BEFORE_DEPLOY_COMMANDS = ("rm -rf node_modules",)
DEPLOY_PROVIDER = "heroku"

KEY_COMMENTS: dict[str, str] = {
    "before_deploy": "Drop installed packages so Heroku builds its own from package.json.",
    "deploy": "Deploy to Heroku after every successful build.",
    "skip_cleanup": "Keep the files produced by the build for the deploy step.",
    "provider": "Travis deployment provider.",
    "app": "Heroku application name, taken from the `heroku` git remote.",
    "api_key": (
        "Heroku API token encrypted with this repository's Travis public key.\n"
        "Only Travis can decrypt it."
    ),
}

IDEMPOTENCE_MESSAGE = """It appears that your token has been encrypted.
To run this script again, delete the `before_deploy` and `deploy` keys
from the .travis.yml file."""

DEFAULT_MAPPING_INDENT = 2
DEFAULT_SEQUENCE_OFFSET = 2


@dataclass(frozen=True, slots=True)
class Indentation:
    """Block indentation used when dumping the document."""

    mapping: int = DEFAULT_MAPPING_INDENT
    sequence: int = DEFAULT_MAPPING_INDENT + DEFAULT_SEQUENCE_OFFSET
    offset: int = DEFAULT_SEQUENCE_OFFSET

    @classmethod
    def guess(cls, text: str) -> Indentation:
        """Return the indentation ``text`` already uses.

        Files without block sequences keep their mapping indent and get
        sequences indented past their key.

        Examples
        --------
        >>> Indentation.guess("node_js:\\n- '10'\\n")
        Indentation(mapping=2, sequence=2, offset=0)
        >>> Indentation.guess("node_js:\\n  - '10'\\n")
        Indentation(mapping=2, sequence=4, offset=2)
        >>> Indentation.guess("language: node_js\\n")
        Indentation(mapping=2, sequence=4, offset=2)
        """

        _, indent, block_seq_indent = load_yaml_guess_indent(text)
        if block_seq_indent is None:
            mapping = indent or DEFAULT_MAPPING_INDENT
            return cls(
                mapping=mapping,
                sequence=mapping + DEFAULT_SEQUENCE_OFFSET,
                offset=DEFAULT_SEQUENCE_OFFSET,
            )
        sequence = indent or block_seq_indent + DEFAULT_MAPPING_INDENT
        return cls(
            mapping=max(sequence - block_seq_indent, DEFAULT_MAPPING_INDENT),
            sequence=sequence,
            offset=block_seq_indent,
        )


@dataclass(slots=True)
class TravisDocument:
    """A parsed Travis file and what is needed to write it back."""

    data: CommentedMap
    indentation: Indentation
    preamble: str = ""


def _yaml(indentation: Indentation) -> YAML:
    yaml = YAML(typ="rt")
    yaml.preserve_quotes = True
    yaml.indent(
        mapping=indentation.mapping,
        sequence=indentation.sequence,
        offset=indentation.offset,
    )
    yaml.width = 4096
    return yaml


def build_deploy_section(app_name: str, secure_value: str) -> CommentedMap:
    """Return the ``deploy`` mapping for ``app_name``.

    Examples
    --------
    >>> dict(build_deploy_section("octo-site", "abc"))["provider"]
    'heroku'
    """

    api_key = CommentedMap()
    api_key["secure"] = secure_value
    deploy = CommentedMap()
    deploy["skip_cleanup"] = True
    deploy["provider"] = DEPLOY_PROVIDER
    deploy["app"] = app_name
    deploy["api_key"] = api_key
    return deploy


def _trim_comment(entry: list[Any] | None, position: int) -> None:
    """Keep only the end-of-line part of the comment token at ``position``."""

    if not entry or len(entry) <= position or entry[position] is None:
        return
    token = entry[position]
    first_line = token.value.split("\n", 1)[0]
    if first_line.strip():
        token.value = f"{first_line}\n"
    else:
        entry[position] = None


def _clear_trailing_comment(node: Any) -> None:
    """Drop comment lines that follow the last entry of ``node``.

    ``ruamel.yaml`` attaches a document's closing comment to its last leaf,
    so once new keys are appended that comment would sit between the old
    content and the inserted keys.
    """

    if isinstance(node, CommentedMap) and node:
        last_key = list(node)[-1]
        _clear_trailing_comment(node[last_key])
        _trim_comment(node.ca.items.get(last_key), 2)
    elif isinstance(node, CommentedSeq) and node:
        last_index = len(node) - 1
        _clear_trailing_comment(node[last_index])
        _trim_comment(node.ca.items.get(last_index), 0)


def _attach_comments(document: CommentedMap, nested_indent: int) -> None:
    for key in list(document):
        if key not in KEY_COMMENTS:
            continue
        document.yaml_set_comment_before_after_key(key, before=KEY_COMMENTS[key])
        if key == "deploy" and isinstance(document[key], CommentedMap):
            deploy = document[key]
            for nested_key in list(deploy):
                if nested_key in KEY_COMMENTS:
                    deploy.yaml_set_comment_before_after_key(
                        nested_key,
                        before=KEY_COMMENTS[nested_key],
                        indent=nested_indent,
                    )


def load_travis_yaml(path: Path) -> TravisDocument:
    """Parse ``path`` as a round-trip YAML mapping.

    An empty or comment-only file yields an empty mapping; its comments are
    kept as a preamble.

    Raises
    ------
    TravisConfigError
        Raised when the file is missing, unparsable or not a mapping.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"{path} does not exist; create a Travis configuration first"
        raise TravisConfigError(msg) from exc
    try:
        indentation = Indentation.guess(text)
        data = _yaml(indentation).load(text)
    except YAMLError as exc:
        msg = f"Failed to parse {path}: {exc}"
        raise TravisConfigError(msg) from exc

    if data is None:
        preamble = f"{text.rstrip()}\n" if text.strip() else ""
        return TravisDocument(CommentedMap(), indentation, preamble)
    if not isinstance(data, CommentedMap):
        msg = f"{path} must contain a YAML mapping at the top level"
        raise TravisConfigError(msg)
    return TravisDocument(data, indentation)


def update_travis_yaml(path: Path, app_name: str, secure_value: str) -> bool:
    """Add the Heroku deploy configuration to the Travis file at ``path``.

    Parameters
    ----------
    path : Path
        Travis configuration file, rewritten in place.
    app_name : str
        Heroku application name.
    secure_value : str
        Base64-encoded encrypted Heroku token.

    Returns
    -------
    bool
        ``True`` when the file was updated, ``False`` when a
        ``before_deploy`` key was already present and nothing changed.
    """

    document = load_travis_yaml(path)
    data = document.data
    if IDEMPOTENCE_KEY in data:
        print(IDEMPOTENCE_MESSAGE)
        return False

    _clear_trailing_comment(data)
    end_comments = getattr(data.ca, "end", None)
    if end_comments:
        del end_comments[:]
    data[IDEMPOTENCE_KEY] = CommentedSeq(BEFORE_DEPLOY_COMMANDS)
    data["deploy"] = build_deploy_section(app_name, secure_value)
    _attach_comments(data, document.indentation.mapping)

    stream = io.StringIO()
    stream.write(document.preamble)
    _yaml(document.indentation).dump(data, stream)
    path.write_text(stream.getvalue(), encoding="utf-8")
    logger.debug("Wrote deploy configuration to %s", path)
    return True


__all__ = [
    "BEFORE_DEPLOY_COMMANDS",
    "DEPLOY_PROVIDER",
    "IDEMPOTENCE_MESSAGE",
    "Indentation",
    "KEY_COMMENTS",
    "TravisDocument",
    "build_deploy_section",
    "load_travis_yaml",
    "update_travis_yaml",
]
