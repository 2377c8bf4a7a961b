# session.py
# Per-frame pipeline shared by the OpenCV window (facemesh_live.py) and the Qt
# GUI (app_qt.py):
#
#   BGR frame -> FaceMesh -> FrameLandmarks -> analyze_frame -> drawables -> preview
#
# The only state kept between frames is what the user asked for: the points
# accumulated for export and the reference face used by the "same person" check.

from dataclasses import dataclass
from typing import Optional

import cv2

from export import PointAccumulator
from landmarks import LandmarkIndexError, analyze_frame, compute_z_range, same_face_identity
from mesh_source import contour_points, frame_from_mediapipe, mesh_triangles
from overlay import (USE_CASE_CONTOUR, USE_CASE_MESH, RenderList, ViewTransform,
                     build_face_drawables, fit_frame)


@dataclass
class FrameStats:
    faces: int = 0
    skipped: int = 0                 # faces dropped for missing landmarks
    z_range: tuple = (float("inf"), float("-inf"))
    distance: Optional[float] = None
    same_person: bool = False


class FaceMeshSession:
    def __init__(self, detector, cfg):
        self.detector = detector
        self.cfg = cfg
        self.use_case = cfg.get("use_case", USE_CASE_MESH)
        self.mirror = bool(cfg.get("mirror", True))
        self.accumulator = PointAccumulator()
        self.reference = None        # points of the first analyzed face
        self.render_list = RenderList()

    def toggle_use_case(self):
        self.use_case = USE_CASE_CONTOUR if self.use_case == USE_CASE_MESH else USE_CASE_MESH
        return self.use_case

    def reset_reference(self):
        self.reference = None

    def detect(self, frame):
        """FrameLandmarks for every face the detector finds in a BGR frame."""
        h, w = frame.shape[:2]
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.detector.process(rgb)
        if not results.multi_face_landmarks:
            return []
        tris = mesh_triangles() if self.use_case == USE_CASE_MESH else ()
        return [frame_from_mediapipe(face, w, h, tris) for face in results.multi_face_landmarks]

    def process(self, frame, view_size=None):
        """
        Run detection on `frame` and return (preview, stats).

        view_size=(w, h) renders into a view of that size (cover + crop);
        otherwise the preview has the frame's own size.
        """
        h, w = frame.shape[:2]
        faces = self.detect(frame)

        if view_size:
            vw, vh = view_size
            view = fit_frame(frame, vw, vh)
            transform = ViewTransform.fit(w, h, vw, vh, flipped=self.mirror)
        else:
            view = frame.copy()
            transform = ViewTransform(1.0, 0.0, 0.0, self.mirror, float(w))
        if self.mirror:
            view = cv2.flip(view, 1)

        stats = FrameStats(faces=len(faces))
        self.render_list.clear()
        all_points = []
        for face in faces:
            self.accumulator.add(face.points)
            all_points.extend(face.points)

            try:
                analysis = analyze_frame(face)
            except LandmarkIndexError as e:
                print(f"[WARN] Skipping face: {e}")
                stats.skipped += 1
                continue

            # only a face that made it through analysis can become the reference
            if self.reference is None and face.points:
                self.reference = face.points
            same = self.reference is not None and same_face_identity(self.reference, face.points)

            if analysis.distance is not None:
                stats.distance = analysis.distance
            stats.same_person = stats.same_person or same
            contour = contour_points(face) if self.use_case == USE_CASE_CONTOUR else ()
            self.render_list.extend(build_face_drawables(
                face, analysis, self.use_case, same_person=same, contour=contour,
                visualize_z=bool(self.cfg.get("visualize_z", True)),
                rescale_z=bool(self.cfg.get("rescale_z", True)),
            ))

        stats.z_range = compute_z_range(all_points)
        self.render_list.render(view, transform)
        return view, stats
