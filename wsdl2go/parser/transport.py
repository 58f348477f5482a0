"""Fetch WSDL and schema documents from URLs or the local filesystem."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol
from urllib.parse import urldefrag, urljoin, urlparse
from urllib.request import url2pathname

import requests

from wsdl2go.config import DEFAULT_TIMEOUT
from wsdl2go.errors import UnsupportedLocation

_URL_SCHEMES = ("http", "https")


class Transport(Protocol):
    def fetch(self, location: str) -> bytes:
        """Return the raw bytes stored at location."""


def is_url(location: str) -> bool:
    return urlparse(location).scheme.lower() in _URL_SCHEMES


def _is_local(location: str) -> bool:
    scheme = urlparse(location).scheme.lower()
    # A single letter scheme is a Windows drive ("C:\\...").
    return scheme in ("", "file") or len(scheme) == 1


def resolve_location(location: str, base: str = "") -> str:
    """Resolve location against the document that referenced it.

    The result is the normalized key used to detect import cycles: absolute
    URLs without fragment, or absolute filesystem paths.
    """
    location = location.strip()
    scheme = urlparse(location).scheme.lower()
    if scheme in _URL_SCHEMES:
        return urldefrag(location)[0]
    if scheme == "file":
        return str(Path(url2pathname(urlparse(location).path)).resolve())
    if scheme and len(scheme) > 1:
        raise UnsupportedLocation(location)
    if base and is_url(base):
        return urldefrag(urljoin(base, location))[0]
    path = Path(location)
    if not path.is_absolute() and base:
        path = Path(base).parent / path
    return str(path.resolve())


class RequestsTransport:
    """Transport backed by a requests.Session for URLs and plain file reads for paths."""

    def __init__(
        self,
        session: requests.Session | None = None,
        insecure: bool = False,
        cert: str = "",
        key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        if insecure:
            self.session.verify = False
        if cert:
            self.session.cert = (cert, key) if key else cert

    def fetch(self, location: str) -> bytes:
        if is_url(location):
            resp = self.session.get(location, timeout=self.timeout)
            resp.raise_for_status()
            return resp.content
        if not _is_local(location):
            raise UnsupportedLocation(location)
        if urlparse(location).scheme.lower() == "file":
            location = url2pathname(urlparse(location).path)
        return Path(location).read_bytes()
