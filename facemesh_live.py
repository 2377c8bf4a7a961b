import cv2                    # OpenCV: webcam capture, drawing, windows
import os                     # os: export folder paths

from config import load                         # JSON settings (config.json)
from export import default_export_name, save_points
from mesh_source import create_face_mesh        # MediaPipe FaceMesh detector
from session import FaceMeshSession             # detection -> analysis -> overlay, per frame
from utils import FPSTimer, hud, fmt_z_range


def export_points(session, cfg):
    """
    Save every point accumulated so far to <export_dir>/Mesh_<millis>.txt.
    Returns the path, or None when there was nothing to save or writing failed.
    """
    if not len(session.accumulator):
        print("[INFO] No points accumulated yet, nothing to export.")
        return None
    path = os.path.join(cfg["export_dir"], default_export_name())
    try:
        save_points(path, session.accumulator.points, cfg["export_style"])
    except OSError as e:
        print(f"[ERROR] Could not write {path}: {e}")
        return None
    print(f"[INFO] Exported {len(session.accumulator)} points → {path}")
    return path


def main():
    cfg = load()

    # --------- Setup camera ---------
    cap = cv2.VideoCapture(cfg["camera_index"])
    if not cap.isOpened():
        print("[ERROR] Could not open camera.")
        return

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg["resolution"][0])
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg["resolution"][1])

    # --------- Setup MediaPipe FaceMesh ---------
    try:
        face_mesh = create_face_mesh(cfg)
    except RuntimeError as e:
        print(f"[ERROR] {e}")
        cap.release()
        return

    session = FaceMeshSession(face_mesh, cfg)
    fps = FPSTimer()

    print("=== Face Mesh Viewer ===")
    print("Controls:")
    print("  M - toggle use case (mesh / contour)")
    print("  S - save accumulated points")
    print("  C - clear accumulated points")
    print("  R - reset the 'same person' reference face")
    print("  Q - quit")

    # ---------------------- MAIN LOOP (per frame) ----------------------
    while True:
        ok, frame = cap.read()
        if not ok:
            break

        out, stats = session.process(frame)

        # ---------- HUD ----------
        hud(out, [
            f"FPS: {fps.tick():.1f}  |  Use case: {session.use_case}  |  Faces: {stats.faces}",
            f"Points: {len(session.accumulator)}  |  {fmt_z_range(stats.z_range)}",
            f"Distance: {stats.distance:.1f}" if stats.distance is not None else "Distance: --",
        ])
        h = out.shape[0]
        cv2.putText(out, "M: use case  S: save  C: clear  R: reset ref  Q: quit",
                    (10, h - 15), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1)

        cv2.imshow("Face Mesh Viewer", out)

        key = cv2.waitKey(1) & 0xFF
        if key == ord('q'):
            break
        elif key == ord('m'):
            print(f"[INFO] Use case → {session.toggle_use_case()}")
        elif key == ord('s'):
            export_points(session, cfg)
        elif key == ord('c'):
            session.accumulator.clear()
            print("[INFO] Cleared accumulated points.")
        elif key == ord('r'):
            session.reset_reference()
            print("[INFO] Reference face reset.")

    # --------- Cleanup ---------
    face_mesh.close()
    cap.release()
    cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
