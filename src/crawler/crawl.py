from __future__ import annotations
import collections
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Deque, Dict, List, Optional, Set, TypedDict

import requests

from palette.colors import ColorObservation
from palette.reduce import NormalizedColor, reduce_palette
from .config import CrawlConfig, CrawlOptions
from .extract import extract, parse_css_colors
from .http import FetchError, FetchFunc, build_session, fetch_text
from .robots import RobotsPolicy, check_robots, default_policy
from .urlnorm import in_scope, is_content_url, normalize_url, url_depth

EventCallback = Callable[[Dict[str, Any]], None]


class CrawlProgress(TypedDict, total=False):
    pagesQueued: int
    pagesDone: int
    pagesError: int
    currentUrl: str
    colorsFound: int
    isComplete: bool
    error: str


class CrawlResult(TypedDict):
    colors: List[ColorObservation]
    pagesCrawled: List[str]
    errors: List[str]
    totalColors: int
    uniqueColors: int


class PaletteResult(TypedDict):
    colors: List[NormalizedColor]
    pagesCrawled: List[str]
    errors: List[str]
    totalColors: int
    uniqueColors: int


STAT_KEYS = (
    "fetched_ok", "errors_fetch", "skipped_non_html", "skipped_too_large", "timeouts",
    "enqueued", "duplicates", "filtered", "stylesheets_fetched", "stylesheet_errors",
    "stylesheet_cache_hits", "css_variables",
)


class CrawlRun:
    """One breadth-first color crawl from a single seed URL.

    The run exclusively owns its queue, visited set, stylesheet cache and the
    observation / error / page lists. `run()` is not re-entrant: calling it
    while the run is active does nothing. Cancellation is cooperative; an
    in-flight fetch finishes but no further fetch starts.

    Depth is the seed-independent path-segment count of a URL (`/a/b` is depth
    2), not the BFS hop distance. A page only contributes links when its depth
    is below `options.max_depth`.
    """

    def __init__(
        self,
        seed: str,
        options: CrawlOptions,
        config: CrawlConfig | None = None,
        *,
        fetch_func: FetchFunc | None = None,
        sleep_func: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        event_cb: EventCallback | None = None,
        session: requests.Session | None = None,
    ) -> None:
        options.validate()
        self.seed = seed
        self.options = options
        self.config = config or CrawlConfig()
        self.fetch_func = fetch_func
        self.sleep = sleep_func
        self.clock = clock
        self.event_cb = event_cb
        self.session = session or build_session(self.config)

        self.queue: Deque[str] = collections.deque()
        self.queued: Set[str] = set()
        self.visited: Set[str] = set()
        self.stylesheet_cache: Dict[str, str] = {}
        self.colors: List[ColorObservation] = []
        self.errors: List[str] = []
        self.pages_crawled: List[str] = []
        self.stats: Dict[str, int] = {k: 0 for k in STAT_KEYS}
        self.robots: RobotsPolicy | None = None
        self.fatal_error: Optional[str] = None
        self.current_url = ""

        self._running = False
        self._finished = False
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    # -- control -----------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_complete(self) -> bool:
        return self._finished and not self._running

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start_background(self) -> threading.Thread:
        """Run the crawl on a daemon thread; progress arrives through event_cb / progress()."""
        if self._thread is None:
            self._thread = threading.Thread(target=self.run, name=f"crawl:{self.seed}", daemon=True)
            self._thread.start()
        return self._thread

    def wait(self, timeout: float | None = None) -> bool:
        if self._thread is not None:
            self._thread.join(timeout)
        return self.is_complete

    def _emit(self, ev: Dict[str, Any]) -> None:
        if self.event_cb:
            self.event_cb(ev)

    # -- snapshots ---------------------------------------------------------

    def progress(self) -> CrawlProgress:
        snap = CrawlProgress(
            pagesQueued=len(self.queue),
            pagesDone=len(self.pages_crawled),
            pagesError=len(self.errors),
            currentUrl=self.current_url,
            colorsFound=len(self.colors),
            isComplete=self.is_complete,
        )
        error = self.fatal_error or (self.errors[-1] if self.errors else None)
        if error:
            snap["error"] = error
        return snap

    def result(self) -> CrawlResult:
        colors = list(self.colors)
        return CrawlResult(
            colors=colors,
            pagesCrawled=list(self.pages_crawled),
            errors=list(self.errors),
            totalColors=len(colors),
            uniqueColors=len({c.hex for c in colors}),
        )

    def palette(self) -> PaletteResult:
        colors = list(self.colors)
        reduced = reduce_palette(colors, self.options.near_duplicate_delta, self.options.min_count)
        return PaletteResult(
            colors=reduced,
            pagesCrawled=list(self.pages_crawled),
            errors=list(self.errors),
            totalColors=len(colors),
            uniqueColors=len({c.hex for c in colors}),
        )

    # -- main loop ---------------------------------------------------------

    def run(self) -> Optional[CrawlResult]:
        if self._running:
            return None
        if self._finished:
            return self.result()
        self._running = True
        try:
            self._run()
        except Exception as e:  # last-resort guard; per-page errors never get here
            self._fail(str(e) or e.__class__.__name__)
        finally:
            self.queue.clear()
            self.queued.clear()
            self.current_url = ""
            self._running = False
            self._finished = True
            self._emit({"type": "done", "pages": len(self.pages_crawled), "colors": len(self.colors),
                        "errors": len(self.errors), "stats": dict(self.stats)})
        return self.result()

    def _fail(self, reason: str) -> None:
        self.fatal_error = f"Crawl failed: {reason}"
        self.errors.append(self.fatal_error)
        self._emit({"type": "fatal", "error": self.fatal_error})

    def _run(self) -> None:
        seed = normalize_url(self.seed)
        if seed is None:
            self._fail(f"invalid seed URL {self.seed!r}")
            return
        self.seed = seed

        if self.options.bypass_robots:
            self.robots = default_policy(self.config.user_agent)
        else:
            self.robots = check_robots(
                seed, session=self.session, user_agent=self.config.user_agent,
                timeout=self.config.robots_timeout, fetch_func=self.fetch_func,
            )
        self._emit({"type": "robots", "allowed": self.robots.is_allowed,
                    "crawl_delay_ms": self.robots.crawl_delay_ms, "bypassed": self.options.bypass_robots})
        if not self.robots.is_allowed:
            self._fail("Crawling not allowed by robots.txt")
            return

        delay = max(self.robots.crawl_delay_ms / 1000.0, self.config.politeness_floor)
        started = self.clock()
        self.queue.append(seed)
        self.queued.add(seed)

        while self.queue and len(self.pages_crawled) < self.options.max_pages:
            if self.cancelled:
                self._emit({"type": "cancelled", "pages": len(self.pages_crawled)})
                break
            elapsed = self.clock() - started
            if elapsed >= self.config.max_runtime:
                self.errors.append(f"Crawl timed out after {self.config.max_runtime:g}s")
                self._emit({"type": "timeout", "elapsed": round(elapsed, 3)})
                break

            url = self.queue.popleft()
            self.queued.discard(url)
            if url in self.visited:
                self.stats["duplicates"] += 1
                continue
            self.visited.add(url)
            self.current_url = url

            try:
                self._crawl_page(url)
            except FetchError as e:
                self._page_error(url, str(e), e.kind)
            except Exception as e:
                self._page_error(url, str(e) or e.__class__.__name__, "unexpected")
            self._emit({"type": "progress", **self.progress()})

            if len(self.colors) > self.config.max_observations:
                self._emit({"type": "observation_cap", "colors": len(self.colors)})
                break
            if self.queue and len(self.pages_crawled) < self.options.max_pages and not self.cancelled:
                self.sleep(delay)

    def _page_error(self, url: str, reason: str, kind: str) -> None:
        self.errors.append(f"Failed to crawl {url}: {reason}")
        self.stats["errors_fetch"] += 1
        if kind == "content_type":
            self.stats["skipped_non_html"] += 1
        elif kind == "too_large":
            self.stats["skipped_too_large"] += 1
        elif kind == "timeout":
            self.stats["timeouts"] += 1
        self._emit({"type": "error", "phase": "fetch", "kind": kind, "url": url, "error": reason})

    def _crawl_page(self, url: str) -> None:
        html, final_url = fetch_text(
            self.session, url,
            timeout=self.config.page_timeout,
            max_bytes=self.config.max_page_bytes,
            require_html=True,
            fetch_func=self.fetch_func,
        )
        self.stats["fetched_ok"] += 1
        page = extract(html, final_url)
        colors = list(page.colors)
        self.stats["css_variables"] += len(page.variables)
        depth = url_depth(url)
        self._emit({"type": "fetched", "url": url, "final": final_url, "depth": depth,
                    "colors": len(page.colors), "links": len(page.links)})

        if len(self.pages_crawled) < self.options.max_pages and not self.cancelled:
            colors.extend(self._process_stylesheets(page.stylesheets))
        budget_left = len(self.pages_crawled) + 1 < self.options.max_pages
        if depth < self.options.max_depth and budget_left and not self.cancelled:
            self._enqueue_links(page.links, parent=url)
        # observations only count once the whole page went through
        self.colors.extend(colors)
        self.pages_crawled.append(url)

    # -- links -------------------------------------------------------------

    def _enqueue_links(self, links: List[str], parent: str) -> None:
        considered = 0
        accepted = 0
        for link in links:
            if considered >= self.config.per_page_link_scan or accepted >= self.config.per_page_link_cap:
                break
            if not in_scope(link, self.seed, self.options.include_subdomains) or \
                    not is_content_url(link, self.config.max_url_length):
                self.stats["filtered"] += 1
                self._emit({"type": "filtered", "url": link})
                continue
            considered += 1
            nu = normalize_url(link)
            if nu is None:
                self.stats["filtered"] += 1
                continue
            if nu in self.visited or nu in self.queued:
                self.stats["duplicates"] += 1
                self._emit({"type": "duplicate", "url": nu})
                continue
            self.queue.append(nu)
            self.queued.add(nu)
            accepted += 1
            self.stats["enqueued"] += 1
            self._emit({"type": "enqueued", "url": nu, "parent": parent, "depth": url_depth(nu)})

    # -- stylesheets -------------------------------------------------------

    def _fetch_stylesheet(self, url: str) -> str:
        css, _ = fetch_text(
            self.session, url,
            timeout=self.config.stylesheet_timeout,
            max_bytes=self.config.max_stylesheet_bytes,
            fetch_func=self.fetch_func,
        )
        return css

    def _process_stylesheets(self, stylesheets: List[str]) -> List[ColorObservation]:
        """Fetch uncached stylesheets in batches; return the colors found in them."""
        colors: List[ColorObservation] = []
        pending: List[str] = []
        for css_url in stylesheets:
            if css_url in self.stylesheet_cache:
                self.stats["stylesheet_cache_hits"] += 1
                continue
            pending.append(css_url)
            if len(pending) >= self.config.max_stylesheets_per_page:
                break
        if not pending:
            return colors
        size = max(1, self.config.stylesheet_batch_size)
        with ThreadPoolExecutor(max_workers=size) as pool:
            for start in range(0, len(pending), size):
                if self.cancelled:
                    break
                if start:
                    self.sleep(self.config.stylesheet_batch_pause)
                batch = pending[start:start + size]
                futures = [(u, pool.submit(self._fetch_stylesheet, u)) for u in batch]
                for css_url, fut in futures:
                    try:
                        css = fut.result()
                    except Exception as e:
                        self.stats["stylesheet_errors"] += 1
                        self._emit({"type": "stylesheet_error", "url": css_url, "error": str(e) or e.__class__.__name__})
                        continue
                    self.stylesheet_cache[css_url] = css
                    found = parse_css_colors(css, css_url)
                    colors.extend(found)
                    self.stats["stylesheets_fetched"] += 1
                    self._emit({"type": "stylesheet", "url": css_url, "colors": len(found)})
        return colors


def crawl_colors(
    seed: str,
    options: CrawlOptions,
    config: CrawlConfig | None = None,
    fetch_func: FetchFunc | None = None,
    sleep_func: Callable[[float], None] = time.sleep,
    stats: Dict[str, int] | None = None,
    event_cb: EventCallback | None = None,
) -> CrawlResult:
    """Run a crawl to completion in the calling thread and return the raw observations."""
    run = CrawlRun(seed, options, config, fetch_func=fetch_func, sleep_func=sleep_func, event_cb=event_cb)
    result = run.run()
    if stats is not None:
        stats.update(run.stats)
    return result if result is not None else run.result()
