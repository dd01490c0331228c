"""Fixed-format renderers for a reduced palette.

CSV is byte-exact: header `hex,count,alpha_present,sample_sources`, one row per
color, sources joined with '; ', rows joined with '\\n' and no trailing newline.
Values are not quoted.
"""
from __future__ import annotations
import json
from typing import Iterable

from .reduce import NormalizedColor

CSV_HEADER = ("hex", "count", "alpha_present", "sample_sources")


def to_csv(colors: Iterable[NormalizedColor]) -> str:
    lines = [",".join(CSV_HEADER)]
    for c in colors:
        lines.append(",".join([
            c.hex,
            str(c.count),
            "yes" if c.alpha_present else "no",
            "; ".join(c.sample_sources),
        ]))
    return "\n".join(lines)


def to_json(colors: Iterable[NormalizedColor]) -> str:
    return json.dumps([c.to_dict() for c in colors], indent=2, ensure_ascii=False)


def to_hex_list(colors: Iterable[NormalizedColor]) -> str:
    return "\n".join(c.hex for c in colors)


FORMATTERS = {
    "csv": to_csv,
    "json": to_json,
    "hex": to_hex_list,
}
