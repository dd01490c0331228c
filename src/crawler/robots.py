from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, Optional
from urllib.parse import urljoin
import re

import requests

from .config import DEFAULT_USER_AGENT

MIN_CRAWL_DELAY_MS = 1000
DELAY_RE = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class RobotsPolicy:
    is_allowed: bool
    crawl_delay_ms: int
    user_agent: str


def _agent_names(user_agent: str) -> set[str]:
    ua = user_agent.strip().lower()
    return {ua, ua.split("/", 1)[0]}


def parse_robots(lines: Iterable[str], user_agent: str = DEFAULT_USER_AGENT) -> RobotsPolicy:
    """Interpret robots.txt lines for `user_agent`.

    A group is relevant when its `User-agent` is `*` or our own agent name.
    Inside a relevant group `Disallow: /` (or an empty Disallow) blocks the
    whole crawl and `Crawl-delay` (whole seconds) sets the delay. Directives
    are applied in file order; the last one wins. Path-specific rules are not
    evaluated.
    """
    names = _agent_names(user_agent)
    is_allowed = True
    delay_ms = MIN_CRAWL_DELAY_MS
    relevant = False
    for raw in lines:
        line = raw.strip().lower()
        if line.startswith("user-agent:"):
            agent = line[len("user-agent:"):].strip()
            relevant = agent == "*" or agent in names
        elif not relevant:
            continue
        elif line.startswith("disallow:"):
            path = line[len("disallow:"):].strip()
            if path in ("/", ""):
                is_allowed = False
        elif line.startswith("crawl-delay:"):
            m = DELAY_RE.match(line[len("crawl-delay:"):])
            if m:
                delay_ms = int(m.group(1)) * 1000
    return RobotsPolicy(is_allowed=is_allowed, crawl_delay_ms=max(delay_ms, MIN_CRAWL_DELAY_MS), user_agent=user_agent)


def default_policy(user_agent: str = DEFAULT_USER_AGENT) -> RobotsPolicy:
    return RobotsPolicy(is_allowed=True, crawl_delay_ms=MIN_CRAWL_DELAY_MS, user_agent=user_agent)


def check_robots(
    base_url: str,
    session: Optional[requests.Session] = None,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = 10.0,
    fetch_func: Callable[..., requests.Response] | None = None,
) -> RobotsPolicy:
    """Fetch `/robots.txt` for the crawl origin and build a RobotsPolicy.

    Never raises: a missing file, non-2xx status, network error or anything
    else unexpected degrades to allow-all with the default 1s delay.
    """
    session = session or requests.Session()
    try:
        robots_url = urljoin(base_url, "/robots.txt")
        if fetch_func:
            resp = fetch_func(session, robots_url, timeout=timeout, allow_redirects=True)
        else:
            resp = session.get(robots_url, timeout=timeout, allow_redirects=True, headers={"User-Agent": user_agent})
        status = getattr(resp, "status_code", 0)
        if not 200 <= status < 300:
            return default_policy(user_agent)
        return parse_robots((resp.text or "").splitlines(), user_agent)
    except Exception:
        return default_policy(user_agent)
