"""Start / poll / results / cancel surface over explicit CrawlRun handles.

`start` validates input and launches the run on a background thread; the
returned handle is what callers pass to `poll`, `get_results` and `cancel`.
Several handles may be alive at once since nothing here is module-global.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import CrawlConfig, CrawlOptions
from .crawl import CrawlProgress, CrawlRun, PaletteResult
from .urlnorm import normalize_url


@dataclass
class StartResult:
    success: bool
    error: Optional[str] = None
    run: Optional[CrawlRun] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.error:
            out["error"] = self.error
        return out


def start(url: str, options: CrawlOptions, config: CrawlConfig | None = None, **run_kwargs: Any) -> StartResult:
    if normalize_url(url) is None:
        return StartResult(success=False, error=f"Invalid URL: {url!r}")
    try:
        run = CrawlRun(url, options, config, **run_kwargs)
    except ValueError as e:
        return StartResult(success=False, error=str(e))
    run.start_background()
    return StartResult(success=True, run=run)


def poll(run: CrawlRun) -> CrawlProgress:
    return run.progress()


def get_results(run: CrawlRun) -> PaletteResult:
    return run.palette()


def cancel(run: CrawlRun | None) -> Dict[str, bool]:
    if run is None:
        return {"success": False}
    run.cancel()
    return {"success": True}
