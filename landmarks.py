# landmarks.py
# Per-frame landmark geometry for the face mesh viewer.
#
# Everything here is a pure function of its inputs: a frame's landmark list
# goes in, plain values come out (z-range, derived distance, identity verdict,
# fixed-index selections). Nothing is cached between frames, so the drawing
# code always works with the z-range of the frame it is drawing.

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

import numpy as np


class LandmarkIndexError(IndexError):
    """A fixed landmark index is not present in the current frame.

    Raised for degraded detections that return fewer points than the
    drawing code expects (e.g. fewer than 468 FaceMesh points).
    """

    def __init__(self, index, size):
        super().__init__(f"landmark index {index} out of range for {size} points")
        self.index = index
        self.size = size


@dataclass(frozen=True)
class Point3D:
    x: float
    y: float
    z: float

    def __sub__(self, other):
        return Point3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, k):
        return Point3D(self.x * k, self.y * k, self.z * k)

    def as_array(self):
        return np.array([self.x, self.y, self.z], dtype=np.float64)


@dataclass(frozen=True)
class LandmarkPoint:
    index: int
    position: Point3D


# Three positions into FrameLandmarks.points
Triangle = Tuple[int, int, int]


@dataclass(frozen=True)
class BoundingBox:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self):
        return self.right - self.left

    @property
    def height(self):
        return self.bottom - self.top

    @classmethod
    def from_points(cls, points):
        if not points:
            raise ValueError("cannot build a bounding box from zero points")
        xs = [p.position.x for p in points]
        ys = [p.position.y for p in points]
        return cls(min(xs), min(ys), max(xs), max(ys))


@dataclass(frozen=True)
class FrameLandmarks:
    """One detected face in one frame."""

    points: Tuple[LandmarkPoint, ...]
    triangles: Tuple[Triangle, ...] = ()
    bounding_box: Optional[BoundingBox] = None

    def __post_init__(self):
        # accept any sequence, store tuples so the value stays immutable
        object.__setattr__(self, "points", tuple(self.points))
        object.__setattr__(self, "triangles", tuple(tuple(t) for t in self.triangles))

        seen = set()
        for p in self.points:
            if p.index in seen:
                raise ValueError(f"duplicate landmark index {p.index} in frame")
            seen.add(p.index)

        n = len(self.points)
        for tri in self.triangles:
            if len(tri) != 3:
                raise ValueError(f"triangle must have 3 indices, got {tri!r}")
            for i in tri:
                if not 0 <= i < n:
                    raise ValueError(f"triangle {tri!r} references position {i} outside {n} points")

    def __len__(self):
        return len(self.points)

    def positions(self):
        """(N, 3) array of x, y, z."""
        if not self.points:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([[p.position.x, p.position.y, p.position.z] for p in self.points],
                        dtype=np.float64)

    def z_range(self):
        return compute_z_range(self.points)


# ---------------------------------------------------------------------------
# Named landmarks
# ---------------------------------------------------------------------------
# FaceMesh numbers its 468 points 0..467. These are the ones the overlay
# marks and measures.

class LandmarkIndex(IntEnum):
    UPPER_LIP_CENTER = 0
    NOSE_TIP_BASE = 5
    NOSE_BRIDGE_THIRD = 6       # one third down the nose
    FOREHEAD_CENTER = 10
    LEFT_EYEBROW_TIP = 46
    LEFT_EAR_NEAREST = 127      # closest mesh point to the left ear
    LEFT_EYE_BOTTOM = 145
    LEFT_EYE_TOP = 159
    RIGHT_EYEBROW_TIP = 276
    RIGHT_EYE_BOTTOM = 374
    RIGHT_EYE_TOP = 386
    RIGHT_EAR_NEAREST = 389


# circles
MARKED_POINTS = (
    LandmarkIndex.NOSE_BRIDGE_THIRD,
    LandmarkIndex.LEFT_EYEBROW_TIP,
    LandmarkIndex.RIGHT_EYEBROW_TIP,
    LandmarkIndex.LEFT_EAR_NEAREST,
    LandmarkIndex.RIGHT_EAR_NEAREST,
)

# line segments: eyebrow tip -> ear, and across each eye
GUIDE_SEGMENTS = (
    (LandmarkIndex.LEFT_EYEBROW_TIP, LandmarkIndex.LEFT_EAR_NEAREST),
    (LandmarkIndex.RIGHT_EYEBROW_TIP, LandmarkIndex.RIGHT_EAR_NEAREST),
    (LandmarkIndex.LEFT_EYE_TOP, LandmarkIndex.LEFT_EYE_BOTTOM),
    (LandmarkIndex.RIGHT_EYE_TOP, LandmarkIndex.RIGHT_EYE_BOTTOM),
)

# (p1, p2, origin) for distance_metric
DISTANCE_TRIPLE = (
    LandmarkIndex.NOSE_TIP_BASE,
    LandmarkIndex.FOREHEAD_CENTER,
    LandmarkIndex.UPPER_LIP_CENTER,
)

# the distance is only measured on frames with more than this many points
DISTANCE_MIN_POINTS = 10


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

def compute_z_range(points):
    """
    Smallest and largest z among `points`.

    Returns (inf, -inf) for an empty sequence. That pair is a "no data"
    marker, not a range: check it with is_empty_range() before normalizing.
    """
    z_min = math.inf
    z_max = -math.inf
    for p in points:
        z = p.position.z
        if z < z_min:
            z_min = z
        if z > z_max:
            z_max = z
    return z_min, z_max


def is_empty_range(z_range):
    z_min, z_max = z_range
    return z_min > z_max


def distance_metric(p1, p2, origin):
    """
    Norm of (2 * origin) - (p2 - p1).

    This is not the distance between p1 and p2: the displacement is measured
    against twice the origin point, so moving `origin` changes the result
    even when p1 and p2 stay put.
    """
    delta = p2 - p1
    offset = origin * 2
    return float(np.linalg.norm((offset - delta).as_array()))


def same_face_identity(points_a, points_b):
    """
    True when both lists hold the same positions in the same order.

    Comparison is exact float equality on x, y and z, so two detections of
    the same person in different frames will almost never match.
    """
    if len(points_a) != len(points_b):
        return False
    for a, b in zip(points_a, points_b):
        pa, pb = a.position, b.position
        if pa.x != pb.x or pa.y != pb.y or pa.z != pb.z:
            return False
    return True


def select_by_fixed_indices(points, indices):
    """Points at the given sequence positions, in request order."""
    n = len(points)
    selected = []
    for i in indices:
        i = int(i)
        if i < 0 or i >= n:
            raise LandmarkIndexError(i, n)
        selected.append(points[i])
    return tuple(selected)


@dataclass(frozen=True)
class FrameAnalysis:
    z_range: Tuple[float, float]
    marked: Tuple[LandmarkPoint, ...] = ()
    segments: Tuple[Tuple[LandmarkPoint, LandmarkPoint], ...] = ()
    distance: Optional[float] = None


def analyze_frame(frame):
    """
    Everything the overlay needs for one frame.

    Raises LandmarkIndexError when the frame is missing a marked or guide
    landmark; the caller skips drawing that frame.
    """
    points = frame.points
    z_range = compute_z_range(points)
    if not points:
        return FrameAnalysis(z_range=z_range)

    marked = select_by_fixed_indices(points, MARKED_POINTS)
    segments = tuple(
        select_by_fixed_indices(points, pair) for pair in GUIDE_SEGMENTS
    )

    distance = None
    if len(points) > DISTANCE_MIN_POINTS:
        p1, p2, origin = select_by_fixed_indices(points, DISTANCE_TRIPLE)
        distance = distance_metric(p1.position, p2.position, origin.position)

    return FrameAnalysis(z_range=z_range, marked=marked, segments=segments, distance=distance)
