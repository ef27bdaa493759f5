"""
KrishiMitra - OpenCV colour heuristic for plant disease screening.
Counts yellow, brown and white pixels and turns the ratios into simulated detections.
Stands in for a trained classifier: the detections feed the disease reference table.
"""
import cv2
import numpy as np
from typing import Tuple, List, Dict, Any

MAX_UPLOAD_BYTES = 5 * 1024 * 1024

# Longest side used for pixel counting; larger images are downscaled (nearest neighbour keeps colours)
MAX_DIMENSION = 1024

# RGB rules (0-255)
YELLOW_R_MIN, YELLOW_G_MIN, YELLOW_B_MAX = 200, 200, 100
BROWN_R_MIN, BROWN_G_MAX, BROWN_B_MAX = 150, 100, 100
WHITE_MIN = 200

# Share of the image above which a symptom counts as present
YELLOW_PATCH_RATIO = 0.10
BROWN_SPOT_RATIO = 0.10
WHITE_GROWTH_RATIO = 0.15

# symptom flag -> simulated detection
SYMPTOM_DETECTIONS: List[Tuple[str, Dict[str, Any]]] = [
    ("has_yellow_patches", {"crop": "rice", "disease": "bacterial_blight", "confidence": 0.85, "part": "leaf"}),
    ("has_brown_spots", {"crop": "tomato", "disease": "early_blight", "confidence": 0.78, "part": "leaf"}),
    ("has_white_growth", {"crop": "wheat", "disease": "powdery_mildew", "confidence": 0.92, "part": "leaf"}),
]


def _resize_max_dimension(img: np.ndarray, max_dim: int) -> np.ndarray:
    """Resize so the longest side is max_dim; preserve aspect ratio."""
    h, w = img.shape[:2]
    if max(h, w) <= max_dim:
        return img
    scale = max_dim / max(h, w)
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_NEAREST)


def decode_image(image_bytes: bytes) -> np.ndarray:
    """Decode uploaded bytes to a BGR image. Raises ValueError when empty or undecodable."""
    if not image_bytes:
        raise ValueError("Invalid image: empty file")
    nparr = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("Invalid image: could not decode")
    return img


def count_symptom_pixels(img: np.ndarray) -> Dict[str, int]:
    """Pixel counts for the yellow / brown / white colour rules on a BGR image."""
    b, g, r = cv2.split(img.astype(np.int16))
    yellow = (r > YELLOW_R_MIN) & (g > YELLOW_G_MIN) & (b < YELLOW_B_MAX)
    brown = (r > BROWN_R_MIN) & (g < BROWN_G_MAX) & (b < BROWN_B_MAX)
    white = (r > WHITE_MIN) & (g > WHITE_MIN) & (b > WHITE_MIN)
    return {
        "yellow": int(np.count_nonzero(yellow)),
        "brown": int(np.count_nonzero(brown)),
        "white": int(np.count_nonzero(white)),
    }


def extract_color_features(image_bytes: bytes) -> Dict[str, Any]:
    """
    Decode an image and measure symptom colour shares.
    Returns ratios (0-1, 4 decimals) and the three symptom flags.
    """
    img = _resize_max_dimension(decode_image(image_bytes), MAX_DIMENSION)
    h, w = img.shape[:2]
    total_pixels = h * w or 1
    counts = count_symptom_pixels(img)

    yellow_ratio = counts["yellow"] / total_pixels
    brown_ratio = counts["brown"] / total_pixels
    white_ratio = counts["white"] / total_pixels
    return {
        "total_pixels": h * w,
        "yellow_ratio": round(yellow_ratio, 4),
        "brown_ratio": round(brown_ratio, 4),
        "white_ratio": round(white_ratio, 4),
        "has_yellow_patches": yellow_ratio > YELLOW_PATCH_RATIO,
        "has_brown_spots": brown_ratio > BROWN_SPOT_RATIO,
        "has_white_growth": white_ratio > WHITE_GROWTH_RATIO,
    }


def simulate_predictions(features: Dict[str, Any]) -> Dict[str, Any]:
    """Turn symptom flags into the detection payload accepted by disease_database.lookup_diseases."""
    diseases = [dict(detection) for flag, detection in SYMPTOM_DETECTIONS if features.get(flag)]
    return {
        "diseases": diseases,
        "primaryCrop": diseases[0]["crop"] if diseases else "unknown",
        "primaryPart": diseases[0]["part"] if diseases else "leaf",
    }
