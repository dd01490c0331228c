from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from .colors import ColorObservation, Lab

MAX_SAMPLE_SOURCES = 3
SORT_FIELDS = ("hex", "count", "alphaPresent")


@dataclass
class NormalizedColor:
    hex: str
    alpha_present: bool
    count: int
    lab: Lab
    sample_sources: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hex": self.hex,
            "alphaPresent": self.alpha_present,
            "count": self.count,
            "sampleSources": list(self.sample_sources),
            "lab": self.lab.to_dict(),
        }


def normalize_colors(colors: Iterable[ColorObservation]) -> List[NormalizedColor]:
    """Stage A: fold observations sharing a hex into one NormalizedColor.

    Output order is first-seen hex order. The first observation's Lab triple is
    the representative for its group.
    """
    groups: Dict[str, NormalizedColor] = {}
    for obs in colors:
        existing = groups.get(obs.hex)
        if existing is None:
            groups[obs.hex] = NormalizedColor(
                hex=obs.hex,
                alpha_present=obs.alpha < 1,
                count=1,
                lab=obs.lab,
                sample_sources=[obs.source],
            )
            continue
        existing.count += 1
        if obs.alpha < 1:
            existing.alpha_present = True
        if len(existing.sample_sources) < MAX_SAMPLE_SOURCES and obs.source not in existing.sample_sources:
            existing.sample_sources.append(obs.source)
    return list(groups.values())


def filter_near_duplicates(colors: Sequence[NormalizedColor], delta: float) -> List[NormalizedColor]:
    """Stage B: greedy one-hop clustering in Lab space.

    Walk colors in order; each unresolved anchor gathers every other color
    within `delta` of itself, the highest-count member of that group (first
    maximum wins) is emitted and the whole group is marked used. Neighbours are
    measured against the anchor only, so the result depends on input order.
    """
    if delta <= 0:
        return list(colors)
    result: List[NormalizedColor] = []
    used: Set[str] = set()
    for color in colors:
        if color.hex in used:
            continue
        near = [o for o in colors if o.hex != color.hex and color.lab.distance(o.lab) <= delta]
        if not near:
            result.append(color)
            used.add(color.hex)
            continue
        cluster = [color] + near
        best = cluster[0]
        for cand in cluster[1:]:
            if cand.count > best.count:
                best = cand
        if best.hex not in used:
            result.append(best)
        used.update(c.hex for c in cluster)
    return result


def reduce_palette(colors: Iterable[ColorObservation], delta: float = 0.0, min_count: int = 1) -> List[NormalizedColor]:
    """Stage A, then Stage B, then drop entries seen fewer than `min_count` times."""
    reduced = filter_near_duplicates(normalize_colors(colors), delta)
    if min_count > 1:
        reduced = [c for c in reduced if c.count >= min_count]
    return reduced


def sort_palette(colors: Iterable[NormalizedColor], by: str = "count", descending: bool = True) -> List[NormalizedColor]:
    if by not in SORT_FIELDS:
        raise ValueError(f"unknown sort field {by!r}; expected one of {', '.join(SORT_FIELDS)}")
    if by == "hex":
        key = lambda c: c.hex.upper()
    elif by == "count":
        key = lambda c: c.count
    else:
        key = lambda c: c.alpha_present
    return sorted(colors, key=key, reverse=descending)


def filter_alpha(colors: Iterable[NormalizedColor], alpha_present: Optional[bool]) -> List[NormalizedColor]:
    """Keep colors whose alpha flag matches; None keeps everything."""
    if alpha_present is None:
        return list(colors)
    return [c for c in colors if c.alpha_present is alpha_present]
