"""Download and normalise the Travis CI public key for a repository."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ._travis_deploy_errors import PublicKeyFetchError

logger = logging.getLogger(__name__)

DEFAULT_TRAVIS_API_URL = "https://api.travis-ci.org"
HTTP_TIMEOUT_SECONDS = 30


class HttpSession(Protocol):
    """The subset of :class:`requests.Session` used here."""

    def get(self, url: str, **kwargs: Any) -> requests.Response: ...


def public_key_url(full_name: str, api_url: str = DEFAULT_TRAVIS_API_URL) -> str:
    """Return the key endpoint for ``full_name``.

    Examples
    --------
    >>> public_key_url("octo/site")
    'https://api.travis-ci.org/repos/octo/site/key'
    >>> public_key_url("octo/site", "https://api.travis-ci.com/")
    'https://api.travis-ci.com/repos/octo/site/key'
    """

    return f"{api_url.rstrip('/')}/repos/{full_name}/key"


def normalise_public_key(pem: str) -> str:
    """Return ``pem`` as a SubjectPublicKeyInfo PEM RSA public key.

    Travis serves PKCS#1 (``BEGIN RSA PUBLIC KEY``) material, which
    ``openssl rsautl -pubin`` refuses, so both PKCS#1 and SubjectPublicKeyInfo
    inputs are re-serialised.

    Raises
    ------
    PublicKeyFetchError
        Raised when ``pem`` is not an RSA public key.
    """

    try:
        key = serialization.load_pem_public_key(pem.encode("utf-8"))
    except ValueError as exc:
        msg = f"Travis returned an unreadable public key: {exc}"
        raise PublicKeyFetchError(msg) from exc
    if not isinstance(key, rsa.RSAPublicKey):
        msg = f"Travis returned a {type(key).__name__}, expected an RSA public key"
        raise PublicKeyFetchError(msg)
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def fetch_public_key(
    full_name: str,
    *,
    api_url: str = DEFAULT_TRAVIS_API_URL,
    session: HttpSession | None = None,
) -> str:
    """Download the repository public key from the Travis API.

    Parameters
    ----------
    full_name : str
        Repository full name (``owner/repo``).
    api_url : str, optional
        Base URL of the Travis API.
    session : HttpSession | None, optional
        HTTP session; a fresh :class:`requests.Session` when omitted.

    Returns
    -------
    str
        The PEM text from the ``key`` field, normalised for ``openssl``.

    Raises
    ------
    PublicKeyFetchError
        Raised on transport errors, non-2xx responses or a malformed body.
    """

    url = public_key_url(full_name, api_url)
    logger.debug("Fetching Travis public key from %s", url)
    http = session or requests.Session()
    try:
        response = http.get(
            url,
            headers={"Accept": "application/json"},
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        msg = f"Failed to fetch Travis public key from {url}: {exc}"
        raise PublicKeyFetchError(msg) from exc
    except ValueError as exc:
        msg = f"Travis returned invalid JSON from {url}: {exc}"
        raise PublicKeyFetchError(msg) from exc
    finally:
        if session is None:
            http.close()

    key = payload.get("key") if isinstance(payload, dict) else None
    if not isinstance(key, str) or not key.strip():
        msg = f"Travis response from {url} has no 'key' field"
        raise PublicKeyFetchError(msg)
    return normalise_public_key(key)


__all__ = [
    "DEFAULT_TRAVIS_API_URL",
    "HTTP_TIMEOUT_SECONDS",
    "fetch_public_key",
    "normalise_public_key",
    "public_key_url",
]
