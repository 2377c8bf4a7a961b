# mesh_source.py
# Turns MediaPipe FaceMesh output into FrameLandmarks values.
#
# MediaPipe reports 468 landmarks per face (478 with refine_landmarks) as
# normalized coordinates: x and y in [0, 1] relative to the image, z relative
# to the head center on roughly the same scale as x. We convert them to image
# pixels once here so the rest of the app never sees normalized values.

from landmarks import BoundingBox, FrameLandmarks, LandmarkPoint, Point3D

try:
    import mediapipe as mp
    FACE_MESH = mp.solutions.face_mesh
except Exception:
    FACE_MESH = None

# Contours shown in the contour-only use case, in drawing order.
# Values are attribute names of MediaPipe's face_mesh connection tables.
DISPLAY_CONTOURS = {
    "face_oval": "FACEMESH_FACE_OVAL",
    "left_eyebrow": "FACEMESH_LEFT_EYEBROW",
    "right_eyebrow": "FACEMESH_RIGHT_EYEBROW",
    "left_eye": "FACEMESH_LEFT_EYE",
    "right_eye": "FACEMESH_RIGHT_EYE",
    "lips": "FACEMESH_LIPS",
    "nose": "FACEMESH_NOSE",
}


def create_face_mesh(cfg):
    """Build a video-mode FaceMesh detector from the app config."""
    if FACE_MESH is None:
        raise RuntimeError("mediapipe is not available; install it to run the face mesh detector")
    return FACE_MESH.FaceMesh(
        static_image_mode=False,
        max_num_faces=int(cfg["max_num_faces"]),
        refine_landmarks=bool(cfg["refine_landmarks"]),
        min_detection_confidence=float(cfg["min_detection_confidence"]),
        min_tracking_confidence=float(cfg["min_tracking_confidence"]),
    )


def frame_from_mediapipe(face_landmarks, width, height, triangles=()):
    """
    Convert one NormalizedLandmarkList into a FrameLandmarks in pixels.

    Points are labeled by their position in MediaPipe's list, which is the
    stable FaceMesh landmark number.
    """
    points = tuple(
        LandmarkPoint(i, Point3D(lm.x * width, lm.y * height, lm.z * width))
        for i, lm in enumerate(face_landmarks.landmark)
    )
    box = BoundingBox.from_points(points) if points else None
    n = len(points)
    tris = tuple(t for t in triangles if max(t) < n)
    return FrameLandmarks(points=points, triangles=tris, bounding_box=box)


def triangles_from_edges(edges):
    """
    Triangles of an undirected edge set: every (a, b, c) with a < b < c whose
    three sides are all edges.
    """
    adj = {}
    for a, b in edges:
        if a == b:
            continue
        adj.setdefault(a, set()).add(b)
        adj.setdefault(b, set()).add(a)

    tris = []
    for a in sorted(adj):
        for b in sorted(n for n in adj[a] if n > a):
            for c in sorted(n for n in adj[a] & adj[b] if n > b):
                tris.append((a, b, c))
    return tuple(tris)


_TESSELATION_TRIANGLES = None


def mesh_triangles():
    """Triangles of the FaceMesh tessellation (computed once)."""
    global _TESSELATION_TRIANGLES
    if _TESSELATION_TRIANGLES is None:
        if FACE_MESH is None:
            return ()
        _TESSELATION_TRIANGLES = triangles_from_edges(FACE_MESH.FACEMESH_TESSELATION)
    return _TESSELATION_TRIANGLES


def contour_tables():
    """name -> edge set for every DISPLAY_CONTOURS entry this MediaPipe ships."""
    if FACE_MESH is None:
        return {}
    return {
        name: getattr(FACE_MESH, attr)
        for name, attr in DISPLAY_CONTOURS.items()
        if hasattr(FACE_MESH, attr)
    }


def contour_points(frame, tables=None):
    """
    Points of the display contours, contour by contour.

    A landmark shared by two contours (e.g. an eye corner) is kept once, at
    its first occurrence. Indices beyond the frame are ignored.
    """
    tables = contour_tables() if tables is None else tables
    n = len(frame.points)
    order = {}
    for edges in tables.values():
        for idx in sorted({i for edge in edges for i in edge}):
            if idx < n:
                order.setdefault(idx, None)
    return tuple(frame.points[i] for i in order)
