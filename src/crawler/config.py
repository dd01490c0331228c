from __future__ import annotations
from dataclasses import dataclass

DEFAULT_USER_AGENT = "Website-Color-Palette-Crawler/1.0"


@dataclass(frozen=True)
class CrawlOptions:
    max_pages: int = 10
    max_depth: int = 2  # compared against a URL's path-segment count
    include_subdomains: bool = False
    bypass_robots: bool = False
    min_count: int = 1  # palette-side filter, applied after reduction
    near_duplicate_delta: float = 0.0  # Lab distance; 0 disables clustering

    def validate(self) -> None:
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1 (got {self.max_pages})")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1 (got {self.max_depth})")
        if self.min_count < 1:
            raise ValueError(f"min_count must be >= 1 (got {self.min_count})")
        if self.near_duplicate_delta < 0:
            raise ValueError(f"near_duplicate_delta must be >= 0 (got {self.near_duplicate_delta})")


@dataclass(frozen=True)
class CrawlConfig:
    user_agent: str = DEFAULT_USER_AGENT
    page_timeout: float = 30.0  # seconds
    stylesheet_timeout: float = 15.0
    robots_timeout: float = 10.0
    max_page_bytes: int = 5 * 1024 * 1024
    max_stylesheet_bytes: int = 2 * 1024 * 1024
    max_runtime: float = 300.0  # hard wall-clock ceiling for one run
    politeness_floor: float = 0.5  # minimum seconds between page fetches
    max_observations: int = 1000  # early stop once the observation list grows past this
    per_page_link_cap: int = 10  # links accepted into the queue per page
    per_page_link_scan: int = 20  # candidate links considered per page
    max_url_length: int = 200
    max_stylesheets_per_page: int = 10
    stylesheet_batch_size: int = 3
    stylesheet_batch_pause: float = 0.1
