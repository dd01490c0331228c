from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
import pathlib
# Ensure src root is on path if running as a script (python src/cli/crawl_palette.py ...)
_root = pathlib.Path(__file__).resolve().parents[1]
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from crawler.config import CrawlConfig, CrawlOptions, DEFAULT_USER_AGENT
from crawler.crawl import CrawlRun
from crawler.iojsonl import read_observations, write_jsonl
from palette.export import FORMATTERS
from palette.reduce import SORT_FIELDS, filter_alpha, reduce_palette, sort_palette


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Crawl a site and report its deduplicated color palette")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--url", help="Seed URL (starting point)")
    src.add_argument("--fromObservations", help="Reduce a saved observations JSONL file instead of crawling")
    ap.add_argument("--maxPages", type=int, default=10, help="Maximum number of pages to fetch")
    ap.add_argument("--maxDepth", type=int, default=2, help="Maximum depth (URL path-segment count) that still contributes links")
    ap.add_argument("--includeSubdomains", action="store_true", help="Follow links to subdomains of the seed host")
    ap.add_argument("--bypassRobots", action="store_true", help="Skip the robots.txt check (only for sites you own)")
    ap.add_argument("--minCount", type=int, default=1, help="Drop palette entries seen fewer than this many times")
    ap.add_argument("--delta", type=float, default=0.0, help="Lab distance under which colors are merged (0 disables)")
    ap.add_argument("--userAgent", default=None, help=f"Override User-Agent string (default {DEFAULT_USER_AGENT})")
    ap.add_argument("--maxRuntime", type=float, help="Wall-clock ceiling for the crawl in seconds (default 300)")
    ap.add_argument("--format", choices=sorted(FORMATTERS), default="csv", help="Palette output format")
    ap.add_argument("--sort", choices=SORT_FIELDS, default="count", help="Palette sort field")
    ap.add_argument("--asc", action="store_true", help="Sort ascending (default descending)")
    ap.add_argument("--alpha", choices=("all", "yes", "no"), default="all", help="Keep only colors with / without alpha")
    ap.add_argument("--out", help="Write the palette here instead of stdout")
    ap.add_argument("--observationsOut", help="Also write raw color observations as JSONL")
    ap.add_argument("--stats", action="store_true", help="Print crawl stats JSON to stderr at end")
    ap.add_argument("--verbose", action="store_true", help="Print per-page / event decisions to stderr")
    ap.add_argument("--logEvents", help="Write JSONL event log to this file")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    options = CrawlOptions(
        max_pages=args.maxPages,
        max_depth=args.maxDepth,
        include_subdomains=args.includeSubdomains,
        bypass_robots=args.bypassRobots,
        min_count=args.minCount,
        near_duplicate_delta=args.delta,
    )
    try:
        options.validate()
    except ValueError as e:
        sys.stderr.write(f"error: {e}\n")
        return 2

    errors: list[str] = []
    stats: dict = {}
    if args.fromObservations:
        observations = read_observations(args.fromObservations)
    else:
        overrides = {}
        if args.userAgent:
            overrides["user_agent"] = args.userAgent
        if args.maxRuntime:
            overrides["max_runtime"] = args.maxRuntime
        cfg = CrawlConfig(**overrides)

        event_fp = None
        if args.logEvents:
            event_log_file = Path(args.logEvents)
            event_log_file.parent.mkdir(parents=True, exist_ok=True)
            event_fp = event_log_file.open("w", encoding="utf-8")

        def event_cb(ev):  # closure writes to stderr / file
            line = json.dumps(ev, ensure_ascii=False, default=str)
            if args.verbose:
                sys.stderr.write(line + "\n")
            if event_fp:
                event_fp.write(line + "\n")

        run = CrawlRun(args.url, options, cfg, event_cb=event_cb if (args.verbose or event_fp) else None)
        try:
            run.run()
        except KeyboardInterrupt:
            run.cancel()
        finally:
            if event_fp:
                event_fp.close()
        observations = list(run.colors)
        errors = list(run.errors)
        stats = dict(run.stats, pages=len(run.pages_crawled))
        if run.fatal_error:
            sys.stderr.write(run.fatal_error + "\n")
            if args.stats:
                sys.stderr.write(json.dumps(stats) + "\n")
            return 1

    if args.observationsOut:
        obs_path = Path(args.observationsOut)
        obs_path.parent.mkdir(parents=True, exist_ok=True)
        write_jsonl(observations, str(obs_path))

    palette = reduce_palette(observations, options.near_duplicate_delta, options.min_count)
    palette = filter_alpha(palette, {"all": None, "yes": True, "no": False}[args.alpha])
    palette = sort_palette(palette, by=args.sort, descending=not args.asc)
    rendered = FORMATTERS[args.format](palette)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(rendered, encoding="utf-8")
    else:
        print(rendered)

    if args.verbose:
        for err in errors:
            sys.stderr.write(f"warning: {err}\n")
    if args.stats:
        stats.update(observations=len(observations), palette=len(palette))
        sys.stderr.write(json.dumps(stats) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
