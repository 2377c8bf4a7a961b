from __future__ import annotations

from types import SimpleNamespace

import pytest

from landmarks import LandmarkPoint, Point3D


def make_points(n, fill=(0.0, 0.0, 0.0), overrides=None):
    """n LandmarkPoints labeled 0..n-1, all at `fill` except `overrides`."""
    overrides = overrides or {}
    return tuple(
        LandmarkPoint(i, Point3D(*overrides.get(i, fill)))
        for i in range(n)
    )


def fake_face(n=468, z=0.0):
    """Duck-typed MediaPipe NormalizedLandmarkList."""
    marks = [
        SimpleNamespace(x=0.3 + 0.4 * (i % 20) / 20, y=0.2 + 0.6 * (i // 20) / 24, z=z)
        for i in range(n)
    ]
    return SimpleNamespace(landmark=marks)


class FakeDetector:
    """Stands in for mediapipe FaceMesh: returns queued faces, one list per call."""

    def __init__(self, *frames):
        self.frames = list(frames)
        self.calls = 0

    def process(self, rgb):
        self.calls += 1
        faces = self.frames.pop(0) if self.frames else []
        return SimpleNamespace(multi_face_landmarks=faces or None)


@pytest.fixture
def face_points():
    return make_points(468)
