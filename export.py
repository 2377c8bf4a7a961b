# export.py
# Accumulates landmark points across frames and writes them to a text file.
#
# Two layouts:
#   compact   - x, y and z printed back to back with no separator, one point per
#               line. This is the format of the original mesh dumps; numbers
#               are rendered the way Java's Float.toString renders them so old
#               files and new ones compare byte for byte.
#   separated - a header line, then "index x y z" per point. Readable by
#               numpy.loadtxt / pandas; use it unless you need the old format.

import os
import time

import numpy as np

EXPORT_STYLES = ["compact", "separated"]


class PointAccumulator:
    """Collects every landmark point reported during a session."""

    def __init__(self):
        self._points = []

    def add(self, points):
        # called once per detected face per frame
        self._points.extend(points)

    @property
    def points(self):
        return tuple(self._points)

    def __len__(self):
        return len(self._points)

    def clear(self):
        self._points.clear()


def java_float(v):
    """Render `v` as a 32-bit float, the way Java's Float.toString does."""
    f = np.float32(v)
    if np.isnan(f):
        return "NaN"
    if np.isinf(f):
        return "Infinity" if f > 0 else "-Infinity"
    if f == 0:
        return "-0.0" if np.signbit(f) else "0.0"

    a = abs(float(f))
    if 1e-3 <= a < 1e7:
        s = np.format_float_positional(f, unique=True, trim="-")
        return s if "." in s else s + ".0"

    # computerized scientific notation: 1.0E-4, 1.2345678E7
    mantissa, exp = np.format_float_scientific(f, unique=True, trim="-").split("e")
    if "." not in mantissa:
        mantissa += ".0"
    return f"{mantissa}E{int(exp)}"


def format_points(points, style="compact"):
    if style == "compact":
        return "".join(
            java_float(p.position.x) + java_float(p.position.y) + java_float(p.position.z) + "\n"
            for p in points
        )
    if style == "separated":
        lines = ["index x y z"]
        lines += [f"{p.index} {p.position.x!r} {p.position.y!r} {p.position.z!r}" for p in points]
        return "\n".join(lines) + "\n"
    raise ValueError(f"unknown export style {style!r}; expected one of {EXPORT_STYLES}")


def default_export_name(now=None):
    """Mesh_<epoch milliseconds>.txt"""
    now = time.time() if now is None else now
    return f"Mesh_{int(now * 1000)}.txt"


def save_points(path, points, style="compact"):
    """Write `points` to `path` and return the path. IO errors propagate."""
    text = format_points(points, style)
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    return path
