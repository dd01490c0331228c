import threading

from crawler import control
from crawler.config import CrawlOptions
from palette.reduce import NormalizedColor
from fakesite import DummyResp, FakeSite, SleepRecorder, page

SEED = "https://example.com/"


def two_page_site():
    return FakeSite({
        SEED: page("/b", style=".accent { background: rgba(0,255,0,0.5); }", inline="color: #FF0000"),
        "https://example.com/b": page(inline="color: #ff0000"),
    })


def test_start_poll_results():
    started = control.start(
        SEED, CrawlOptions(max_pages=10, max_depth=2, bypass_robots=True),
        fetch_func=two_page_site(), sleep_func=SleepRecorder(),
    )
    assert started.success is True
    assert started.to_dict() == {"success": True}
    run = started.run
    assert run.wait(timeout=10)
    progress = control.poll(run)
    assert progress["isComplete"] is True
    assert progress["pagesDone"] == 2
    assert progress["pagesQueued"] == 0
    assert "error" not in progress

    results = control.get_results(run)
    assert results["pagesCrawled"] == [SEED, "https://example.com/b"]
    assert results["totalColors"] == 3
    assert results["uniqueColors"] == 2
    by_hex = {c.hex: c for c in results["colors"]}
    assert all(isinstance(c, NormalizedColor) for c in results["colors"])
    assert by_hex["#FF0000"].count == 2
    assert by_hex["#00FF00"].alpha_present is True


def test_results_apply_min_count_and_delta():
    started = control.start(
        SEED, CrawlOptions(max_pages=10, max_depth=2, bypass_robots=True, min_count=2),
        fetch_func=two_page_site(), sleep_func=SleepRecorder(),
    )
    started.run.wait(timeout=10)
    results = control.get_results(started.run)
    assert [c.hex for c in results["colors"]] == ["#FF0000"]
    # distinct raw hexes, same figure the raw run result reports
    assert results["uniqueColors"] == 2
    assert results["uniqueColors"] == started.run.result()["uniqueColors"]


def test_results_unique_count_is_raw_hexes_when_clustering():
    site = FakeSite({SEED: page(inline="color: #FF0000; background: #FE0000; border-color: #0000FF")})
    started = control.start(
        SEED, CrawlOptions(max_pages=1, bypass_robots=True, near_duplicate_delta=5.0),
        fetch_func=site, sleep_func=SleepRecorder(),
    )
    started.run.wait(timeout=10)
    results = control.get_results(started.run)
    assert [c.hex for c in results["colors"]] == ["#FF0000", "#0000FF"]
    assert results["totalColors"] == 3
    assert results["uniqueColors"] == 3


def test_start_rejects_invalid_url_and_options():
    bad = control.start("notaurl", CrawlOptions(bypass_robots=True))
    assert bad.success is False
    assert bad.run is None
    assert "Invalid URL" in bad.error
    bad = control.start(SEED, CrawlOptions(max_depth=0))
    assert bad.success is False
    assert "max_depth" in bad.to_dict()["error"]


def test_robots_disallow_start_succeeds_but_poll_reports_fatal():
    site = FakeSite({
        "https://example.com/robots.txt": DummyResp("https://example.com/robots.txt", 200, "User-agent: *\nDisallow: /", "text/plain"),
        SEED: page(),
    })
    started = control.start(SEED, CrawlOptions(max_pages=5, max_depth=2), fetch_func=site, sleep_func=SleepRecorder())
    assert started.success is True
    started.run.wait(timeout=10)
    progress = control.poll(started.run)
    assert progress["isComplete"] is True
    assert "robots.txt" in progress["error"]
    assert control.get_results(started.run)["pagesCrawled"] == []


def test_cancel():
    assert control.cancel(None) == {"success": False}
    site = two_page_site()
    gate, entered = threading.Event(), threading.Event()

    def held_fetch(session, url, **kwargs):
        entered.set()
        gate.wait(5)
        return site(session, url, **kwargs)

    started = control.start(SEED, CrawlOptions(bypass_robots=True), fetch_func=held_fetch, sleep_func=SleepRecorder())
    assert entered.wait(5)
    assert control.cancel(started.run) == {"success": True}
    gate.set()
    assert started.run.wait(timeout=10)
    assert started.run.cancelled
    assert control.poll(started.run)["isComplete"] is True
    # the in-flight page finishes but nothing further is fetched
    assert control.get_results(started.run)["pagesCrawled"] == [SEED]
    assert site.calls == [SEED]


def test_independent_runs_do_not_share_state():
    a = control.start(SEED, CrawlOptions(bypass_robots=True), fetch_func=two_page_site(), sleep_func=SleepRecorder())
    b = control.start(SEED, CrawlOptions(bypass_robots=True, max_pages=1), fetch_func=two_page_site(), sleep_func=SleepRecorder())
    a.run.wait(timeout=10)
    b.run.wait(timeout=10)
    assert len(control.get_results(a.run)["pagesCrawled"]) == 2
    assert len(control.get_results(b.run)["pagesCrawled"]) == 1
    assert a.run.visited is not b.run.visited
