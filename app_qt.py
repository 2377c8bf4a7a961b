# app_qt.py: Face Mesh Viewer (Qt GUI)
import sys, os
import cv2

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QApplication, QWidget, QLabel, QPushButton, QVBoxLayout, QHBoxLayout,
    QComboBox, QCheckBox, QGroupBox, QFileDialog, QStatusBar
)

from config import load, save
from export import EXPORT_STYLES, default_export_name, save_points
from mesh_source import create_face_mesh
from overlay import USE_CASES
from session import FaceMeshSession
from utils import FPSTimer, fmt_z_range

USE_CASE_LABELS = {"mesh": "Face Mesh Detection", "contour": "Contours Only"}

def bgr_to_qpixmap(bgr):
    rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
    h, w, ch = rgb.shape
    bytes_per_line = ch * w
    qimg = QImage(rgb.data, w, h, bytes_per_line, QImage.Format.Format_RGB888)
    return QPixmap.fromImage(qimg)

class FaceMeshApp(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Face Mesh Viewer – Qt")
        self.cfg = load()
        self.cap = cv2.VideoCapture(self.cfg["camera_index"])
        if not self.cap.isOpened():
            raise RuntimeError("Camera error: could not open camera.")
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH,  self.cfg["resolution"][0])
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg["resolution"][1])

        try:
            self.face_mesh = create_face_mesh(self.cfg)
        except RuntimeError:
            self.cap.release()
            raise
        self.session = FaceMeshSession(self.face_mesh, self.cfg)
        self.fps = FPSTimer()

        self._build_ui()
        self._wire_events()

        # timer for video loop
        self.timer = QTimer(self)
        self.timer.timeout.connect(self._tick)
        self.timer.start(30)  # ~33 FPS target

    # -------- UI ----------
    def _build_ui(self):
        # Preview
        self.preview = QLabel("Preview")
        self.preview.setAlignment(Qt.AlignCenter)
        self.preview.setMinimumSize(640, 360)
        self.preview.setStyleSheet("background:#111; color:#bbb;")

        # Detector (the use-case spinner) + camera toggles
        det_box = QGroupBox("Detector")
        self.combo_use_case = QComboBox()
        self.combo_use_case.addItems([USE_CASE_LABELS[u] for u in USE_CASES])
        self.combo_use_case.setCurrentIndex(USE_CASES.index(self.session.use_case))
        self.chk_mirror = QCheckBox("Mirror (front camera)")
        self.chk_mirror.setChecked(self.session.mirror)
        self.chk_depth = QCheckBox("Color by depth")
        self.chk_depth.setChecked(bool(self.cfg["visualize_z"]))
        hb_det = QHBoxLayout()
        hb_det.addWidget(self.combo_use_case); hb_det.addWidget(self.chk_mirror); hb_det.addWidget(self.chk_depth)
        det_box.setLayout(hb_det)

        # Export
        exp_box = QGroupBox("Export")
        self.combo_style = QComboBox()
        self.combo_style.addItems(EXPORT_STYLES)
        self.combo_style.setCurrentIndex(EXPORT_STYLES.index(self.cfg["export_style"]))
        self.lbl_points = QLabel("0 points")
        hb_exp = QHBoxLayout(); hb_exp.addWidget(self.combo_style); hb_exp.addWidget(self.lbl_points)
        exp_box.setLayout(hb_exp)

        # Buttons
        hb_buttons = QHBoxLayout()
        self.btn_save  = QPushButton("Save Points")
        self.btn_clear = QPushButton("Clear Points")
        self.btn_ref   = QPushButton("Reset Reference")
        self.btn_quit  = QPushButton("Quit")
        for b in (self.btn_save, self.btn_clear, self.btn_ref, self.btn_quit):
            b.setMinimumWidth(120)
        hb_buttons.addWidget(self.btn_save); hb_buttons.addWidget(self.btn_clear)
        hb_buttons.addWidget(self.btn_ref); hb_buttons.addWidget(self.btn_quit)

        # Status bar
        self.status = QStatusBar()
        self.status.showMessage("Ready")

        # Layout
        root = QVBoxLayout()
        root.addWidget(self.preview)
        root.addWidget(det_box)
        root.addWidget(exp_box)
        root.addLayout(hb_buttons)
        root.addWidget(self.status)
        self.setLayout(root)

    def _wire_events(self):
        self.combo_use_case.currentIndexChanged.connect(self._set_use_case)
        self.chk_mirror.toggled.connect(self._set_mirror)
        self.chk_depth.toggled.connect(self._set_depth)
        self.combo_style.currentIndexChanged.connect(self._set_style)

        self.btn_save.clicked.connect(self._save_points)
        self.btn_clear.clicked.connect(self._clear_points)
        self.btn_ref.clicked.connect(self._reset_reference)
        self.btn_quit.clicked.connect(self._quit)

    # -------- Actions ----------
    def _set_use_case(self, idx):
        self.session.use_case = USE_CASES[idx]; self.cfg["use_case"] = USE_CASES[idx]

    def _set_mirror(self, on):
        self.session.mirror = bool(on); self.cfg["mirror"] = bool(on)

    def _set_depth(self, on):
        self.cfg["visualize_z"] = bool(on)

    def _set_style(self, idx):
        self.cfg["export_style"] = EXPORT_STYLES[idx]

    def _save_points(self):
        if not len(self.session.accumulator):
            self.status.showMessage("No points to save yet", 2000)
            return
        os.makedirs(self.cfg["export_dir"], exist_ok=True)
        suggested = os.path.join(self.cfg["export_dir"], default_export_name())
        path, _ = QFileDialog.getSaveFileName(self, "Save mesh points", suggested, "Text files (*.txt)")
        if not path:
            return  # cancelled
        try:
            save_points(path, self.session.accumulator.points, self.cfg["export_style"])
        except OSError as e:
            print(f"[ERROR] Could not write {path}: {e}")
            self.status.showMessage(f"Save failed: {e}", 4000)
            return
        self.status.showMessage(f"Saved {len(self.session.accumulator)} points to {path}", 3000)

    def _clear_points(self):
        self.session.accumulator.clear()
        self.status.showMessage("Points cleared", 1500)

    def _reset_reference(self):
        self.session.reset_reference()
        self.status.showMessage("Reference face reset", 1500)

    def _quit(self):
        self.close()

    # -------- Frame loop ----------
    def _tick(self):
        ok, frame = self.cap.read()
        if not ok: return

        view = (self.preview.width(), self.preview.height())
        out, stats = self.session.process(frame, view_size=view)
        self.preview.setPixmap(bgr_to_qpixmap(out))
        self.lbl_points.setText(f"{len(self.session.accumulator)} points")

        fps_val = self.fps.tick()
        dist = f"{stats.distance:.1f}" if stats.distance is not None else "--"
        self.status.showMessage(
            f"Use case: {self.session.use_case}  |  FPS: {fps_val:.1f}  |  Faces: {stats.faces}  |  "
            f"{fmt_z_range(stats.z_range)}  |  Distance: {dist}  |  Same person: {stats.same_person}"
        )

    # -------- Cleanup ----------
    def closeEvent(self, event):
        save(self.cfg)
        self.timer.stop()
        if self.face_mesh: self.face_mesh.close()
        if self.cap: self.cap.release()
        cv2.destroyAllWindows()
        event.accept()

def main():
    app = QApplication(sys.argv)
    ui = FaceMeshApp()
    ui.resize(900, 760)
    ui.show()
    sys.exit(app.exec())

if __name__ == "__main__":
    main()
