from __future__ import annotations
from urllib.parse import urljoin, urlparse, urlunparse
from typing import Optional
import re

BLOCKED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")

NON_CONTENT_EXTENSIONS = {
    # documents / archives
    "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "odt", "csv", "zip", "rar", "7z", "tar", "gz", "exe", "dmg",
    # media
    "jpg", "jpeg", "png", "gif", "svg", "webp", "ico", "bmp", "tif", "tiff", "avif",
    "mp3", "mp4", "avi", "mov", "webm", "wav", "ogg", "m4a",
    # assets / feeds
    "css", "js", "json", "xml", "rss", "woff", "woff2", "ttf", "eot", "otf",
}
NON_CONTENT_PATH_RE = re.compile(
    r"/(wp-admin|wp-json|wp-login\.php|admin|administrator|api|graphql|cgi-bin|login|logout|signin|signout|cart|checkout|feed)(/|$)",
    re.I,
)
NON_CONTENT_QUERY_RE = re.compile(r"(^|&)(download|export|print|format=(pdf|csv|xml|json))", re.I)


def normalize_url(href: str, base: str | None = None) -> Optional[str]:
    """Resolve `href` against `base` and reduce it to scheme+host+path.

    Query string and fragment are dropped; scheme and host are lowercased,
    path casing is kept. Returns None for anything that is not an absolute
    http(s) URL once resolved.
    """
    href = (href or "").strip()
    if not href or href.lower().startswith(BLOCKED_SCHEMES):
        return None
    try:
        absu = urljoin(base, href) if base else href
        u = urlparse(absu)
    except ValueError:
        return None
    if u.scheme.lower() not in ("http", "https") or not u.hostname:
        return None
    return urlunparse((u.scheme.lower(), u.netloc.lower(), u.path or "/", "", "", ""))


DEFAULT_PORTS = {"http": 80, "https": 443}


def _origin(url: str) -> tuple:
    u = urlparse(url)
    scheme = u.scheme.lower()
    try:
        port = u.port
    except ValueError:
        port = None
    return scheme, (u.hostname or "").lower(), port or DEFAULT_PORTS.get(scheme)


def is_same_origin(url: str, base: str) -> bool:
    """Scheme, host and port match; an explicit default port equals none."""
    return _origin(url) == _origin(base)


def is_subdomain(url: str, base: str) -> bool:
    """True when url's host equals base's host or sits below it."""
    host = (urlparse(url).hostname or "").lower()
    root = (urlparse(base).hostname or "").lower()
    return bool(root) and (host == root or host.endswith("." + root))


def in_scope(url: str, base: str, include_subdomains: bool) -> bool:
    if include_subdomains:
        return is_subdomain(url, base)
    return is_same_origin(url, base)


def url_depth(url: str) -> int:
    """Number of non-empty path segments: '/' -> 0, '/a/b/' -> 2."""
    return len([p for p in urlparse(url).path.split("/") if p])


def is_content_url(url: str, max_length: int = 200) -> bool:
    """Reject URLs that are unlikely to be crawlable HTML pages."""
    if len(url) > max_length:
        return False
    p = urlparse(url)
    last = p.path.rsplit("/", 1)[-1]
    if "." in last and last.rsplit(".", 1)[-1].lower() in NON_CONTENT_EXTENSIONS:
        return False
    if NON_CONTENT_PATH_RE.search(p.path):
        return False
    if p.query and NON_CONTENT_QUERY_RE.search(p.query):
        return False
    return True


def is_stylesheet_url(url: str) -> bool:
    return urlparse(url).path.lower().endswith(".css")
