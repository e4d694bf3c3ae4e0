from __future__ import annotations

import math
from typing import List, NamedTuple


# CIE L*a*b* reference white (D65) and sRGB <-> XYZ matrices
_XN, _YN, _ZN = 0.95047, 1.0, 1.08883
_EPSILON = 0.008856
_KAPPA = 903.3

# Readability bounds for generated identifier colors
MIN_LIGHTNESS, MAX_LIGHTNESS = 45.0, 80.0
MIN_CHROMA, MAX_CHROMA = 30.0, 60.0


class RGB(NamedTuple):
    """sRGB color with channels in [0, 1]."""

    r: float
    g: float
    b: float

    def hex(self) -> str:
        return rgb_to_hex(self)


def _clamp(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else hi if v > hi else v


def _gamma(c: float) -> float:
    if c > 0.0031308:
        return 1.055 * math.pow(c, 1 / 2.4) - 0.055
    return 12.92 * c


def _linear(c: float) -> float:
    if c > 0.04045:
        return math.pow((c + 0.055) / 1.055, 2.4)
    return c / 12.92


def lab_to_srgb(L: float, a: float, b: float) -> RGB:
    """Convert CIE L*a*b* (D65) to sRGB, clamping out-of-gamut channels."""
    fy = (L + 16) / 116
    fx = a / 500 + fy
    fz = fy - b / 200

    x = fx ** 3 if fx ** 3 > _EPSILON else (116 * fx - 16) / _KAPPA
    y = fy ** 3 if L > _KAPPA * _EPSILON else L / _KAPPA
    z = fz ** 3 if fz ** 3 > _EPSILON else (116 * fz - 16) / _KAPPA
    x *= _XN; y *= _YN; z *= _ZN

    r = x * 3.2404542 - y * 1.5371385 - z * 0.4985314
    g = -x * 0.9692660 + y * 1.8760108 + z * 0.0415560
    bl = x * 0.0556434 - y * 0.2040259 + z * 1.0572252
    return RGB(*(_clamp(_gamma(c), 0.0, 1.0) for c in (r, g, bl)))


def srgb_to_lab(rgb) -> tuple[float, float, float]:
    r, g, b = (_linear(_clamp(float(c), 0.0, 1.0)) for c in rgb)
    x = (r * 0.4124564 + g * 0.3575761 + b * 0.1804375) / _XN
    y = (r * 0.2126729 + g * 0.7151522 + b * 0.0721750) / _YN
    z = (r * 0.0193339 + g * 0.1191920 + b * 0.9503041) / _ZN

    def f(t: float) -> float:
        return t ** (1 / 3) if t > _EPSILON else (_KAPPA * t + 16) / 116

    fx, fy, fz = f(x), f(y), f(z)
    return 116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz)


def lightness_of(rgb) -> float:
    """Perceived lightness (L*, 0-100) of a theme color."""
    return _clamp(srgb_to_lab(rgb)[0], 0.0, 100.0)


def rgb_to_hex(rgb) -> str:
    return "#" + "".join(f"{int(round(_clamp(float(c), 0.0, 1.0) * 255)):02x}" for c in rgb)


def hex_to_rgb(css: str) -> RGB:
    """Parse ``#rgb`` / ``#rrggbb``; raises ValueError on anything else."""
    s = (css or "").strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) != 6:
        raise ValueError(f"not a hex color: {css!r}")
    return RGB(*(int(s[i:i + 2], 16) / 255.0 for i in (0, 2, 4)))


def identifier_color(slot: int, palette_size: int, fg_lightness: float, bg_lightness: float) -> RGB:
    """Color for palette ``slot`` given the theme's fg/bg lightness.

    Lightness follows the foreground (clamped to 45-80) and chroma follows the
    background (clamped to 30-60), so contrast scales with how dark the theme
    is. The hue walks ``slot / palette_size`` of half a turn, so only
    [0, pi) of the wheel is used.
    """
    n = max(1, int(palette_size))
    L = _clamp(float(fg_lightness), MIN_LIGHTNESS, MAX_LIGHTNESS)
    C = _clamp(float(bg_lightness), MIN_CHROMA, MAX_CHROMA)
    hue = (slot / n) * math.pi
    return lab_to_srgb(L, C * math.cos(hue), C * math.sin(hue))


def generate_palette(palette_size: int, fg_lightness: float, bg_lightness: float) -> List[RGB]:
    return [identifier_color(i, palette_size, fg_lightness, bg_lightness) for i in range(max(1, int(palette_size)))]
