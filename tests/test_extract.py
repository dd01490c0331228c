from crawler.extract import extract, parse_css_colors, css_color_tokens

BASE = "https://example.com/page"


def test_inline_and_style_block_sources():
    html = """<html><head><style>.accent { background: rgba(0,255,0,0.5); }</style></head>
    <body><div style="color: #FF0000">Hi red</div></body></html>"""
    res = extract(html, BASE)
    assert [(c.hex, c.alpha) for c in res.colors] == [("#FF0000", 1), ("#00FF00", 0.5)]
    assert res.colors[0].source == f"{BASE} (inline style)"
    assert res.colors[1].source == f"{BASE} (<style> block)"


def test_text_content_is_not_scanned():
    res = extract("<p>red green blue #FFFFFF</p>", BASE)
    assert res.colors == []


def test_selectors_are_not_colors():
    css = ".red, [data-tone=blue] { border: 1px solid navy; } a:hover{color:teal} table td { width: 10px }"
    assert [c.hex for c in parse_css_colors(css, "s")] == ["#000080", "#008080"]


def test_comments_and_urls_ignored():
    css = "/* color: red */ body { background: url(/img/red.png) no-repeat #123456; }"
    assert [c.hex for c in parse_css_colors(css, "s")] == ["#123456"]


def test_var_references_left_unresolved():
    variables = []
    css = ":root { --brand: #336699; } .btn { color: var(--brand); background: var(--bg, #fff); }"
    colors = parse_css_colors(css, "s", variables)
    assert [c.hex for c in colors] == ["#336699"]
    assert variables == ["--brand", "--bg"]


def test_multiple_tokens_in_one_value_keep_order():
    css = "body{box-shadow: 0 0 2px rgba(0,0,0,.2), inset 0 1px hsl(0, 100%, 50%); border-color: #fff red}"
    assert css_color_tokens(css)[:1] == ["rgba(0,0,0,.2)"]
    assert [c.hex for c in parse_css_colors(css, "s")] == ["#000000", "#FF0000", "#FFFFFF", "#FF0000"]


def test_links_resolved_and_deduped():
    html = """
    <link rel="stylesheet" href="/css/site.css">
    <a href="/about">About</a><a href="about#team">Team</a><a href="/about">Again</a>
    <a href="mailto:x@example.com">Mail</a><a href="javascript:void(0)">JS</a>
    <a href="https://other.org/x?q=1">Other</a><a href="">Empty</a>
    """
    res = extract(html, BASE)
    assert res.links == [
        "https://example.com/css/site.css",
        "https://example.com/about",
        "https://example.com/about#team",
        "https://other.org/x?q=1",
    ]
    assert res.stylesheets == ["https://example.com/css/site.css"]


def test_garbage_markup_does_not_raise():
    res = extract("<<<div style='color:'>>></p><style>{{{", BASE)
    assert res.colors == []
