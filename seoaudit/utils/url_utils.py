import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

_DEFAULT_PORTS = {"http": 80, "https": 443}
_WHITESPACE = re.compile(r"\s")


def ensure_scheme(url: str, default_scheme: str = "http") -> str:
    """Prefix `default_scheme://` when the URL has neither an http nor https scheme."""
    if not url.lower().startswith(("http://", "https://")):
        return f"{default_scheme}://{url}"
    return url


def normalize_url(url: str, strip_www: bool = False, remove_trailing_slash: bool = False) -> str:
    """Normalize a site URL.

    Adds a scheme when missing, lower-cases scheme and host, drops default
    ports and the fragment. Path and query are kept as given.
    """
    url = ensure_scheme(url.strip())
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if strip_www and host.startswith("www."):
        host = host[len("www."):]
    netloc = host
    if parts.port is not None and _DEFAULT_PORTS.get(scheme) != parts.port:
        netloc = f"{host}:{parts.port}"
    if parts.username:
        userinfo = parts.username if parts.password is None else f"{parts.username}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    path = parts.path
    if remove_trailing_slash:
        path = path.rstrip("/")
    elif not path:
        path = "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def origin_of(url: str) -> str:
    """Return `scheme://host[:port]` of a (possibly schemeless) URL."""
    parts = urlsplit(normalize_url(url))
    return f"{parts.scheme}://{parts.netloc}"


def host_of(url: str) -> Optional[str]:
    return urlsplit(normalize_url(url)).hostname


def is_valid_url(url) -> bool:
    """True for well-formed absolute http(s) URLs."""
    if not isinstance(url, str) or not url or _WHITESPACE.search(url):
        return False
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError for a malformed port
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)
