"""Color model adapter: raw CSS color text -> ColorObservation.

Accepted syntax:
  - hex: #rgb, #rgba, #rrggbb, #rrggbbaa (case-insensitive)
  - rgb()/rgba() with comma or space separated channels, optional `/ alpha`,
    integer, float or percentage channels
  - hsl()/hsla() with deg/turn/rad/grad (or unitless degree) hue
  - CSS named colors (via webcolors) plus `transparent`

Anything else (empty text, var() references, keywords such as `inherit`)
parses to None. `parse_color` never raises.

Lab values are CIE L*a*b* under D65, rounded to 2 decimals; hex is always the
6-digit uppercase form, alpha lives in its own field.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
import colorsys
import math
import re

import numpy as np
import webcolors

HEX_RE = re.compile(r"^#([0-9a-f]{3,8})$")
FUNC_RE = re.compile(r"^(rgba?|hsla?)\(\s*(.*?)\s*\)$", re.S)
HUE_UNITS = {"deg": 1.0, "turn": 360.0, "grad": 0.9, "rad": 180.0 / math.pi}

# D65 reference white
XN, YN, ZN = 0.95047, 1.0, 1.08883
LAB_EPSILON = 0.008856
LAB_KAPPA = 903.3

RGBA = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Lab:
    l: float
    a: float
    b: float

    def distance(self, other: "Lab") -> float:
        return math.sqrt((self.l - other.l) ** 2 + (self.a - other.a) ** 2 + (self.b - other.b) ** 2)

    def to_dict(self) -> Dict[str, float]:
        return {"l": self.l, "a": self.a, "b": self.b}


@dataclass(frozen=True)
class ColorObservation:
    hex: str
    alpha: float
    lab: Lab
    original_value: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hex": self.hex,
            "alpha": self.alpha,
            "lab": self.lab.to_dict(),
            "originalValue": self.original_value,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, rec: Mapping[str, Any]) -> "ColorObservation":
        lab = rec.get("lab") or {}
        return cls(
            hex=str(rec["hex"]).upper(),
            alpha=float(rec.get("alpha", 1.0)),
            lab=Lab(float(lab.get("l", 0.0)), float(lab.get("a", 0.0)), float(lab.get("b", 0.0))),
            original_value=str(rec.get("originalValue", rec["hex"])),
            source=str(rec.get("source", "")),
        )


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert an (N, 3) array of 0-255 sRGB values to L*a*b*."""
    rgb_norm = np.asarray(rgb, dtype=np.float64).reshape(-1, 3) / 255.0

    mask = rgb_norm > 0.04045
    rgb_linear = np.where(mask, ((rgb_norm + 0.055) / 1.055) ** 2.4, rgb_norm / 12.92)

    r, g, b = rgb_linear[:, 0], rgb_linear[:, 1], rgb_linear[:, 2]
    x = (r * 0.4124564 + g * 0.3575761 + b * 0.1804375) / XN
    y = (r * 0.2126729 + g * 0.7151522 + b * 0.0721750) / YN
    z = (r * 0.0193339 + g * 0.1191920 + b * 0.9503041) / ZN

    fx = np.where(x > LAB_EPSILON, np.cbrt(x), (LAB_KAPPA * x + 16) / 116)
    fy = np.where(y > LAB_EPSILON, np.cbrt(y), (LAB_KAPPA * y + 16) / 116)
    fz = np.where(z > LAB_EPSILON, np.cbrt(z), (LAB_KAPPA * z + 16) / 116)

    return np.column_stack([116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz)])


def _finite(num: str) -> Optional[float]:
    try:
        v = float(num)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


def _channel(tok: str) -> Optional[float]:
    if tok.endswith("%"):
        v = _finite(tok[:-1])
        if v is None:
            return None
        v *= 2.55
    else:
        v = _finite(tok)
        if v is None:
            return None
    return min(max(v, 0.0), 255.0)


def _alpha(tok: str) -> Optional[float]:
    if tok.endswith("%"):
        v = _finite(tok[:-1])
        v = None if v is None else v / 100.0
    else:
        v = _finite(tok)
    if v is None:
        return None
    return min(max(v, 0.0), 1.0)


def _fraction(tok: str) -> Optional[float]:
    v = _finite(tok[:-1] if tok.endswith("%") else tok)
    if v is None:
        return None
    return min(max(v / 100.0, 0.0), 1.0)


def _hue(tok: str) -> Optional[float]:
    for unit, mult in HUE_UNITS.items():
        if tok.endswith(unit):
            v = _finite(tok[: -len(unit)])
            return None if v is None else (v * mult) % 360.0
    v = _finite(tok)
    return None if v is None else v % 360.0


def _parse_hex(text: str) -> Optional[RGBA]:
    m = HEX_RE.match(text)
    if not m:
        return None
    h = m.group(1)
    if len(h) in (3, 4):
        h = "".join(ch * 2 for ch in h)
    if len(h) not in (6, 8):
        return None
    r, g, b = (int(h[i:i + 2], 16) for i in (0, 2, 4))
    a = int(h[6:8], 16) / 255.0 if len(h) == 8 else 1.0
    return float(r), float(g), float(b), a


def _split_args(body: str) -> Optional[Tuple[list[str], Optional[str]]]:
    if "," in body:
        parts = [p.strip() for p in body.split(",")]
        if len(parts) == 4:
            return parts[:3], parts[3]
        return (parts, None) if len(parts) == 3 else None
    alpha = None
    if "/" in body:
        body, alpha = body.split("/", 1)
        alpha = alpha.strip()
    parts = body.split()
    if len(parts) != 3:
        return None
    return parts, alpha


def _parse_function(text: str) -> Optional[RGBA]:
    m = FUNC_RE.match(text)
    if not m:
        return None
    name, body = m.group(1), m.group(2)
    split = _split_args(body)
    if split is None:
        return None
    parts, alpha_tok = split
    a = 1.0
    if alpha_tok is not None:
        a = _alpha(alpha_tok)
        if a is None:
            return None
    if name.startswith("rgb"):
        chans = [_channel(p) for p in parts]
        if any(c is None for c in chans):
            return None
        return chans[0], chans[1], chans[2], a
    h, s, l = _hue(parts[0]), _fraction(parts[1]), _fraction(parts[2])
    if h is None or s is None or l is None:
        return None
    r, g, b = colorsys.hls_to_rgb(h / 360.0, l, s)
    return r * 255.0, g * 255.0, b * 255.0, a


def _parse_named(text: str) -> Optional[RGBA]:
    if text == "transparent":
        return 0.0, 0.0, 0.0, 0.0
    if not text.isalpha():
        return None
    try:
        rgb = webcolors.name_to_rgb(text)
    except ValueError:
        return None
    return float(rgb.red), float(rgb.green), float(rgb.blue), 1.0


def _to_hex(r: float, g: float, b: float) -> str:
    return "#%02X%02X%02X" % tuple(int(c + 0.5) for c in (r, g, b))


def parse_color(value: Any, source: str) -> Optional[ColorObservation]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    low = trimmed.lower()
    rgba = _parse_hex(low) or _parse_function(low) or _parse_named(low)
    if rgba is None:
        return None
    r, g, b, a = rgba
    hex_code = _to_hex(r, g, b)
    # Lab from the rounded channels so identical hexes share one triple
    ri, gi, bi = (int(hex_code[i:i + 2], 16) for i in (1, 3, 5))
    L, A, B = rgb_to_lab(np.array([[ri, gi, bi]]))[0]
    return ColorObservation(
        hex=hex_code,
        alpha=round(a, 3),
        lab=Lab(round(float(L), 2), round(float(A), 2), round(float(B), 2)),
        original_value=trimmed,
        source=source,
    )
