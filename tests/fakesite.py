"""In-memory website used by crawler tests instead of the network."""
import requests


class DummyResp:
    def __init__(self, url, status_code=200, text="", content_type="text/html; charset=utf-8", headers=None):
        self.url = url
        self.status_code = status_code
        self.text = text
        self.headers = {"Content-Type": content_type}
        if headers:
            self.headers.update(headers)


class StreamResp:
    """Behaves like a real requests response: body only reachable through iter_content."""

    def __init__(self, url, body=b"", content_type="text/html", encoding="utf-8", chunk=64 * 1024, headers=None):
        self.url = url
        self.status_code = 200
        self.headers = {"Content-Type": content_type}
        if headers:
            self.headers.update(headers)
        self.encoding = encoding
        self.body = body
        self.chunk = chunk
        self.read = 0
        self.closed = False

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), self.chunk):
            piece = self.body[i:i + self.chunk]
            self.read += len(piece)
            yield piece

    def close(self):
        self.closed = True


class FakeSite:
    """fetch_func stand-in: maps URL -> html string, DummyResp or exception; unknown URLs 404."""

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.calls = []

    def __call__(self, session, url, **kwargs):
        self.calls.append(url)
        entry = self.pages.get(url)
        if entry is None:
            return DummyResp(url, 404, "not found", "text/plain")
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, str):
            if url.endswith(".css"):
                return DummyResp(url, 200, entry, "text/css")
            return DummyResp(url, 200, entry)
        return entry

    def count(self, url):
        return self.calls.count(url)


def page(*links, style="", inline="", extra=""):
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    head = f"<style>{style}</style>" if style else ""
    body = f'<div style="{inline}">x</div>' if inline else ""
    return f"<html><head>{head}{extra}</head><body>{body}{anchors}</body></html>"


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


ConnectionFailure = requests.ConnectionError
