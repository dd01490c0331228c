from __future__ import annotations
import json
from typing import Any, Iterable, Iterator, List

from palette.colors import ColorObservation


def write_jsonl(records: Iterable[Any], out_path: str) -> int:
    """Write records (mappings or objects with to_dict()) as UTF-8 JSONL; return the line count."""
    n = 0
    with open(out_path, "w", encoding="utf-8") as f:
        for rec in records:
            if hasattr(rec, "to_dict"):
                rec = rec.to_dict()
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
            n += 1
    return n


def read_jsonl(path: str) -> Iterator[Any]:
    """Yield objects from a JSONL file lazily, skipping blank and corrupt lines."""
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def read_observations(path: str) -> List[ColorObservation]:
    out: List[ColorObservation] = []
    for rec in read_jsonl(path):
        if not isinstance(rec, dict) or not rec.get("hex"):
            continue
        try:
            out.append(ColorObservation.from_dict(rec))
        except (TypeError, ValueError, AttributeError):
            continue
    return out
