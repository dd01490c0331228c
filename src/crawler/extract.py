"""Pull raw color text and links out of fetched markup and stylesheets.

Only declaration values are scanned (`prop: value`), so selectors such as
`.red` or `[data-tone=blue]` never count as colors. Comments and `url(...)`
payloads are blanked first. `var(--x)` references are reported, not resolved.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List
from urllib.parse import urljoin
import re

from bs4 import BeautifulSoup

from palette.colors import ColorObservation, parse_color
from .urlnorm import BLOCKED_SCHEMES, is_stylesheet_url

COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
URL_FUNC_RE = re.compile(r"url\(\s*[^)]*\)", re.I)
DECLARATION_RE = re.compile(r"(?<![\w-])(--[\w-]+|[a-zA-Z-]+)\s*:\s*([^;{}]+)")
VALUE_TOKEN_RE = re.compile(
    r"(?P<var>\bvar\(\s*--[\w-]+[^()]*\))"
    r"|(?P<func>\b(?:rgba?|hsla?)\([^()]*\))"
    r"|(?P<hex>#[0-9a-fA-F]+\b)"
    r"|(?P<word>(?<![\w.#-])[a-zA-Z]+(?![\w(-]))",
    re.I,
)
VAR_NAME_RE = re.compile(r"--[\w-]+")

INLINE_SUFFIX = "(inline style)"
STYLE_BLOCK_SUFFIX = "(<style> block)"


@dataclass
class ExtractResult:
    colors: List[ColorObservation] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    variables: List[str] = field(default_factory=list)  # unresolved var(--x) names

    @property
    def stylesheets(self) -> List[str]:
        return [u for u in self.links if is_stylesheet_url(u)]


def _clean_css(css: str) -> str:
    return URL_FUNC_RE.sub(" ", COMMENT_RE.sub(" ", css))


def css_color_tokens(css: str, variables: List[str] | None = None) -> List[str]:
    """Return raw color-looking tokens from declaration values, in order.

    Tokens are candidates only: words such as `solid` come back too and are
    rejected later by the color parser.
    """
    tokens: List[str] = []
    for decl in DECLARATION_RE.finditer(_clean_css(css)):
        for m in VALUE_TOKEN_RE.finditer(decl.group(2)):
            if m.group("var"):
                if variables is not None:
                    variables.append(VAR_NAME_RE.search(m.group("var")).group(0))
                continue
            tokens.append(m.group(0))
    return tokens


def parse_css_colors(css: str, source: str, variables: List[str] | None = None) -> List[ColorObservation]:
    colors: List[ColorObservation] = []
    for tok in css_color_tokens(css, variables):
        color = parse_color(tok, source)
        if color:
            colors.append(color)
    return colors


def _resolve_link(href: str, base_url: str) -> str | None:
    href = href.strip()
    if not href or href.lower().startswith(BLOCKED_SCHEMES):
        return None
    try:
        absu = urljoin(base_url, href)
    except ValueError:
        return None
    if not absu.lower().startswith(("http://", "https://")):
        return None
    return absu


def extract(html: str, base_url: str) -> ExtractResult:
    """Colors from inline styles and <style> blocks, plus every href as an absolute URL.

    Links keep discovery order with duplicates removed; linked stylesheets are
    among them (see ExtractResult.stylesheets) and are fetched separately.
    """
    result = ExtractResult()
    soup = BeautifulSoup(html or "", "lxml")

    for node in soup.find_all(style=True):
        style = node.get("style")
        if isinstance(style, str) and style.strip():
            result.colors.extend(parse_css_colors(style, f"{base_url} {INLINE_SUFFIX}", result.variables))

    for node in soup.find_all("style"):
        body = node.string if node.string is not None else node.get_text()
        if body and body.strip():
            result.colors.extend(parse_css_colors(body, f"{base_url} {STYLE_BLOCK_SUFFIX}", result.variables))

    links: List[str] = []
    for node in soup.find_all(href=True):
        href = node.get("href")
        if not isinstance(href, str):
            continue
        absu = _resolve_link(href, base_url)
        if absu:
            links.append(absu)
    result.links = list(dict.fromkeys(links))
    return result
