import cv2, time

from landmarks import is_empty_range

class FPSTimer:
    """Frames per second, averaged over `interval` seconds."""
    def __init__(self, interval=0.5):
        self.interval = interval; self.reset()
    def reset(self):
        self.t0 = time.time(); self.frames = 0; self.val = 0.0
    def tick(self):
        self.frames += 1
        elapsed = time.time() - self.t0
        if elapsed >= self.interval:
            self.val = self.frames / elapsed; self.frames = 0; self.t0 = time.time()
        return self.val

def hud(img, lines, start_y=24, color=(255,255,255)):
    for i,txt in enumerate(lines):
        org = (10, start_y+25*i)
        cv2.putText(img, txt, org, cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0,0,0), 4, cv2.LINE_AA)
        cv2.putText(img, txt, org, cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)

def fmt_z_range(z_range):
    if is_empty_range(z_range): return "z: --"
    z_min, z_max = z_range
    return f"z: {z_min:.1f} .. {z_max:.1f}"
