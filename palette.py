"""Distinct piece colors, spaced evenly in hue in OKLCH space."""

import math

import numpy as np
import numba
from numba import jit as njit

DEFAULT_LIGHTNESS = 0.72
DEFAULT_CHROMA = 0.16
GAMUT_EPSILON = 1e-6


@njit(nopython=True)
def oklch_to_oklab(oklch):
    """Convert OKLCH to OKLAB."""
    n = oklch.shape[0]
    oklab = np.empty((n, 3), dtype=np.float64)
    for i in range(n):
        h_rad = math.radians(oklch[i, 2])
        oklab[i, 0] = oklch[i, 0]
        oklab[i, 1] = oklch[i, 1] * math.cos(h_rad)
        oklab[i, 2] = oklch[i, 1] * math.sin(h_rad)
    return oklab


@numba.jit(nopython=True)
def oklab_to_linear_srgb(oklab):
    """Convert OKLAB to Linear sRGB."""
    n = oklab.shape[0]
    linear = np.empty((n, 3), dtype=np.float64)
    for i in range(n):
        l_ = oklab[i, 0] + 0.3963377774 * oklab[i, 1] + 0.2158037573 * oklab[i, 2]
        m_ = oklab[i, 0] - 0.1055613458 * oklab[i, 1] - 0.0638541728 * oklab[i, 2]
        s_ = oklab[i, 0] - 0.0894841775 * oklab[i, 1] - 1.2914855480 * oklab[i, 2]

        l = l_ ** 3
        m = m_ ** 3
        s = s_ ** 3

        linear[i, 0] = +4.0767416621 * l - 3.3077115913 * m + 0.2309699292 * s
        linear[i, 1] = -1.2684380046 * l + 2.6097574011 * m - 0.3413193965 * s
        linear[i, 2] = -0.0041960863 * l - 0.7034186147 * m + 1.7076147010 * s
    return linear


@numba.jit(nopython=True)
def linear_srgb_to_srgb(linear):
    """Convert Linear sRGB to sRGB (gamma correction)."""
    srgb = np.empty_like(linear)
    for i in range(linear.shape[0]):
        for j in range(linear.shape[1]):
            val = linear[i, j]
            if val <= 0.0031308:
                srgb[i, j] = 12.92 * val
            else:
                srgb[i, j] = 1.055 * (max(val, 0) ** (1 / 2.4)) - 0.055
    return srgb


@numba.jit(nopython=True)
def _in_gamut(l, c, h):
    temp = np.empty((1, 3), dtype=np.float64)
    temp[0, 0] = l
    temp[0, 1] = c
    temp[0, 2] = h
    linear = oklab_to_linear_srgb(oklch_to_oklab(temp))
    for j in range(3):
        if linear[0, j] < -GAMUT_EPSILON or linear[0, j] > 1.0 + GAMUT_EPSILON:
            return False
    return True


@numba.jit(nopython=True)
def constrain_to_gamut(oklch):
    """Reduce chroma of each color until it fits the sRGB gamut. Modifies in place."""
    for i in range(oklch.shape[0]):
        if oklch[i, 0] < 0.0:
            oklch[i, 0] = 0.0
        if oklch[i, 0] > 1.0:
            oklch[i, 0] = 1.0

        l = oklch[i, 0]
        h = oklch[i, 2]
        if _in_gamut(l, oklch[i, 1], h):
            continue

        # Binary search on chroma
        low = 0.0
        high = oklch[i, 1]
        for _ in range(20):
            mid = (low + high) / 2
            if _in_gamut(l, mid, h):
                low = mid
            else:
                high = mid
        oklch[i, 1] = low

    return oklch


def piece_colors(num_pieces, lightness=DEFAULT_LIGHTNESS, chroma=DEFAULT_CHROMA):
    """Returns `num_pieces` hex colors with evenly spaced hues."""
    if num_pieces <= 0:
        return []

    oklch = np.empty((num_pieces, 3), dtype=np.float64)
    oklch[:, 0] = lightness
    oklch[:, 1] = chroma
    oklch[:, 2] = np.arange(num_pieces) * (360.0 / num_pieces)

    oklch = constrain_to_gamut(oklch)
    srgb = linear_srgb_to_srgb(oklab_to_linear_srgb(oklch_to_oklab(oklch)))
    srgb_8bit = np.clip(np.round(srgb * 255), 0, 255).astype(int).tolist()

    return [f"#{r:02x}{g:02x}{b:02x}" for r, g, b in srgb_8bit]
