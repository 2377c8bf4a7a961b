import copy, json, os
DEFAULT = { "resolution":[1280,720], "camera_index":0,
            "use_case":"mesh", "mirror":True,
            "visualize_z":True, "rescale_z":True,
            "max_num_faces":1, "refine_landmarks":False,
            "min_detection_confidence":0.5, "min_tracking_confidence":0.5,
            "export_style":"compact", "export_dir":"exports" }

def load(path="config.json"):
    if os.path.exists(path):
        try:
            with open(path) as f: cfg = json.load(f)
        except (OSError, ValueError):
            cfg = None
        if isinstance(cfg, dict):
            # keys missing from older files fall back to defaults
            merged = copy.deepcopy(DEFAULT); merged.update(cfg)
            return merged
    save(DEFAULT, path); return copy.deepcopy(DEFAULT)

def save(cfg, path="config.json"):
    with open(path,"w") as f: json.dump(cfg, f, indent=2)
