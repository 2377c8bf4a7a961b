# overlay.py
# Things that draw on a preview frame.
#
# Each overlay item is a small object with a render(canvas, transform) method.
# A RenderList holds them in order and draws them onto a BGR image; there is no
# base class to inherit from. The transform maps image coordinates (where the
# detector reports landmarks) to view coordinates (the canvas being drawn).

from dataclasses import dataclass

import cv2
import numpy as np

from landmarks import is_empty_range

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)

FACE_POSITION_RADIUS = 8
BOX_STROKE_WIDTH = 5
LINE_WIDTH = 2
SAME_PERSON_ORIGIN = (10, 160)   # below the HUD lines

USE_CASE_MESH = "mesh"
USE_CASE_CONTOUR = "contour"
USE_CASES = [USE_CASE_MESH, USE_CASE_CONTOUR]


@dataclass(frozen=True)
class ViewTransform:
    """Image -> view mapping: uniform scale, post-scale crop offset, mirror."""

    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    flipped: bool = False
    view_width: float = 0.0

    @classmethod
    def fit(cls, image_w, image_h, view_w, view_h, flipped=False):
        """Scale to fill the view, cropping the overflowing dimension evenly."""
        view_aspect = view_w / view_h
        image_aspect = image_w / image_h
        off_x = off_y = 0.0
        if view_aspect > image_aspect:
            scale = view_w / image_w
            off_y = (view_w / image_aspect - view_h) / 2
        else:
            scale = view_h / image_h
            off_x = (view_h * image_aspect - view_w) / 2
        return cls(scale, off_x, off_y, flipped, float(view_w))

    def scale_value(self, v):
        return v * self.scale

    def translate_x(self, x):
        if self.flipped:
            return self.view_width - (self.scale_value(x) - self.offset_x)
        return self.scale_value(x) - self.offset_x

    def translate_y(self, y):
        return self.scale_value(y) - self.offset_y

    def to_view(self, point):
        return int(round(self.translate_x(point.x))), int(round(self.translate_y(point.y)))


def color_for_z(z, z_range, transform, visualize_z=True, rescale_z=True):
    """
    BGR color for a depth value.

    Points in front of the z origin (negative z) shade from white toward red,
    points behind it toward blue. With rescale_z the bounds come from the
    frame's z-range, otherwise from the view width.
    """
    if not visualize_z:
        return WHITE
    if rescale_z and not is_empty_range(z_range):
        z_min, z_max = z_range
        lower = min(-0.001, transform.scale_value(z_min))
        upper = max(0.001, transform.scale_value(z_max))
    else:
        width = transform.view_width or 1.0
        lower, upper = -width, width

    zs = transform.scale_value(z)
    if zs < 0:
        v = int(np.clip(int(zs / lower * 255), 0, 255))
        return (255 - v, 255 - v, 255)
    v = int(np.clip(int(zs / upper * 255), 0, 255))
    return (255, 255 - v, 255 - v)


@dataclass(frozen=True)
class DepthPaint:
    """Per-frame depth coloring settings shared by the frame's drawables."""

    z_range: tuple
    visualize_z: bool = True
    rescale_z: bool = True

    def color(self, z, transform):
        return color_for_z(z, self.z_range, transform, self.visualize_z, self.rescale_z)


def _resolve(paint, z, transform):
    if isinstance(paint, DepthPaint):
        return paint.color(z, transform)
    return paint


@dataclass(frozen=True)
class BoxDrawable:
    box: object
    color: tuple = WHITE
    thickness: int = BOX_STROKE_WIDTH

    def render(self, canvas, transform):
        # mirrored x swaps left and right
        x0 = transform.translate_x(self.box.left)
        x1 = transform.translate_x(self.box.right)
        pt1 = (int(round(min(x0, x1))), int(round(transform.translate_y(self.box.top))))
        pt2 = (int(round(max(x0, x1))), int(round(transform.translate_y(self.box.bottom))))
        cv2.rectangle(canvas, pt1, pt2, self.color, self.thickness)


@dataclass(frozen=True)
class CircleDrawable:
    point: object
    paint: object = WHITE
    radius: int = FACE_POSITION_RADIUS

    def render(self, canvas, transform):
        color = _resolve(self.paint, self.point.z, transform)
        cv2.circle(canvas, transform.to_view(self.point), self.radius, color, -1)


@dataclass(frozen=True)
class LineDrawable:
    start: object
    end: object
    paint: object = WHITE
    thickness: int = LINE_WIDTH

    def render(self, canvas, transform):
        # colored by the segment's mean depth
        z = (self.start.z + self.end.z) / 2
        color = _resolve(self.paint, z, transform)
        cv2.line(canvas, transform.to_view(self.start), transform.to_view(self.end),
                 color, self.thickness, cv2.LINE_AA)


@dataclass(frozen=True)
class TextDrawable:
    text: str
    origin: tuple
    color: tuple = WHITE
    scale: float = 1.0
    thickness: int = 2

    def render(self, canvas, transform):
        # view coordinates; a dark outline stands in for a drop shadow
        cv2.putText(canvas, self.text, self.origin, cv2.FONT_HERSHEY_SIMPLEX,
                    self.scale, BLACK, self.thickness + 3, cv2.LINE_AA)
        cv2.putText(canvas, self.text, self.origin, cv2.FONT_HERSHEY_SIMPLEX,
                    self.scale, self.color, self.thickness, cv2.LINE_AA)


class RenderList:
    """Ordered drawables for one frame."""

    def __init__(self, items=()):
        self.items = list(items)

    def __len__(self):
        return len(self.items)

    def add(self, drawable):
        self.items.append(drawable)
        return self

    def extend(self, drawables):
        self.items.extend(drawables)
        return self

    def clear(self):
        self.items.clear()

    def render(self, canvas, transform):
        for item in self.items:
            item.render(canvas, transform)
        return canvas


def build_face_drawables(frame, analysis, use_case=USE_CASE_MESH, same_person=False,
                         contour=(), visualize_z=True, rescale_z=True):
    """
    Drawables for one detected face: bounding box, contour points (contour
    use case), marked landmarks, guide lines (mesh use case) and the
    "Same Person" banner.
    """
    paint = DepthPaint(analysis.z_range, visualize_z, rescale_z)
    items = []

    if frame.bounding_box is not None:
        items.append(BoxDrawable(frame.bounding_box))

    if use_case == USE_CASE_CONTOUR:
        items.extend(CircleDrawable(p.position, paint, radius=2) for p in contour)

    items.extend(CircleDrawable(p.position, paint) for p in analysis.marked)

    if use_case == USE_CASE_MESH:
        items.extend(LineDrawable(a.position, b.position, paint) for a, b in analysis.segments)

    if same_person:
        items.append(TextDrawable("Same Person", SAME_PERSON_ORIGIN))

    return items


def fit_frame(image, view_w, view_h):
    """Resize `image` to cover a view_w x view_h view and center-crop it,
    the same mapping ViewTransform.fit applies to landmark coordinates."""
    h, w = image.shape[:2]
    scale = max(view_w / w, view_h / h)
    nw, nh = max(view_w, int(round(w * scale))), max(view_h, int(round(h * scale)))
    resized = cv2.resize(image, (nw, nh), interpolation=cv2.INTER_LINEAR)
    x0, y0 = (nw - view_w) // 2, (nh - view_h) // 2
    return resized[y0:y0 + view_h, x0:x0 + view_w].copy()
