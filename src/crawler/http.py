from __future__ import annotations
from typing import Any, Callable, Tuple

import requests

from .config import CrawlConfig

HTML_TYPES = ("text/html", "application/xhtml")
CHUNK_SIZE = 64 * 1024

FetchFunc = Callable[..., Any]


class FetchError(Exception):
    """A single page or stylesheet could not be fetched; never fatal to a run.

    `kind` is one of: network, timeout, status, content_type, too_large.
    """

    def __init__(self, message: str, kind: str = "network") -> None:
        super().__init__(message)
        self.kind = kind


def build_session(config: CrawlConfig) -> requests.Session:
    session = requests.Session()
    session.headers.update({
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,text/css,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    })
    return session


def _read_body(resp: Any, max_bytes: int) -> str:
    iter_content = getattr(resp, "iter_content", None)
    if iter_content is None:
        # fake / pre-buffered responses
        text = resp.text or ""
        if len(text.encode("utf-8", errors="ignore")) > max_bytes:
            raise FetchError(f"body exceeds {max_bytes} bytes", "too_large")
        return text
    buf = bytearray()
    for chunk in iter_content(chunk_size=CHUNK_SIZE):
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise FetchError(f"body exceeds {max_bytes} bytes", "too_large")
    encoding = getattr(resp, "encoding", None) or "utf-8"
    try:
        return buf.decode(encoding, errors="replace")
    except LookupError:
        return buf.decode("utf-8", errors="replace")


def fetch_text(
    session: requests.Session,
    url: str,
    *,
    timeout: float,
    max_bytes: int,
    require_html: bool = False,
    fetch_func: FetchFunc | None = None,
) -> Tuple[str, str]:
    """GET `url` and return (body text, final url after redirects).

    Raises FetchError on network failure, timeout, HTTP status >= 400, a
    non-HTML content type when `require_html`, or a body over `max_bytes`
    (checked against Content-Length before reading, then while streaming).
    """
    try:
        if fetch_func:
            resp = fetch_func(session, url, timeout=timeout, allow_redirects=True, stream=True)
        else:
            resp = session.get(url, timeout=timeout, allow_redirects=True, stream=True)
    except requests.Timeout as e:
        raise FetchError(f"timed out after {timeout:g}s", "timeout") from e
    except requests.RequestException as e:
        raise FetchError(str(e) or e.__class__.__name__) from e
    try:
        status = getattr(resp, "status_code", 0)
        if not 200 <= status < 400:
            raise FetchError(f"HTTP {status}", "status")
        headers = getattr(resp, "headers", {}) or {}
        ctype = (headers.get("Content-Type") or "").lower()
        if require_html and not any(t in ctype for t in HTML_TYPES):
            raise FetchError(f"unsupported content type {ctype or 'unknown'}", "content_type")
        length = (headers.get("Content-Length") or "").strip()
        if length.isdigit() and int(length) > max_bytes:
            raise FetchError(f"Content-Length {length} exceeds {max_bytes} bytes", "too_large")
        try:
            text = _read_body(resp, max_bytes)
        except requests.Timeout as e:
            raise FetchError(f"timed out after {timeout:g}s", "timeout") from e
        except requests.RequestException as e:
            raise FetchError(str(e) or e.__class__.__name__) from e
        return text, getattr(resp, "url", None) or url
    finally:
        close = getattr(resp, "close", None)
        if close:
            close()
