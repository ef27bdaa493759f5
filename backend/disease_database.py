"""
KrishiMitra - Plant disease reference table.
Maps detections (crop, disease, confidence) from the image heuristic or the browser
to description, severity, pesticides and preventive measures. Pure lookup, no inference.
"""

from typing import Any, Dict, List, Optional

HEALTHY_MESSAGE = "The plant appears healthy. Continue with regular care and monitoring."

# crop id -> disease id -> profile
DISEASE_DATABASE: Dict[str, Dict[str, Dict[str, Any]]] = {
    "tomato": {
        "early_blight": {
            "name": "Early Blight",
            "description": "Brown spots with concentric rings that enlarge over time.",
            "pesticides": ["Mancozeb", "Chlorothalonil", "Copper-based fungicides"],
            "severity": "medium",
            "treatment_timeline": "Apply fungicides every 7-10 days until symptoms resolve",
            "preventive_measures": [
                "Maintain proper plant spacing for air circulation",
                "Water at the base of plants",
                "Remove infected leaves promptly",
            ],
        },
        "late_blight": {
            "name": "Late Blight",
            "description": "Dark brown spots with fuzzy white growth on undersides.",
            "pesticides": ["Metalaxyl", "Cymoxanil", "Azoxystrobin"],
            "severity": "high",
            "treatment_timeline": "Begin treatment immediately, apply fungicides every 5-7 days",
            "preventive_measures": [
                "Plant resistant varieties",
                "Avoid overhead irrigation",
                "Monitor weather conditions",
            ],
        },
    },
    "potato": {
        "early_blight": {
            "name": "Early Blight",
            "description": "Dark brown to black lesions with concentric rings.",
            "pesticides": ["Mancozeb", "Chlorothalonil", "Copper-based fungicides"],
            "severity": "medium",
            "treatment_timeline": "Apply fungicides every 7-10 days in favorable conditions",
            "preventive_measures": [
                "Rotate crops",
                "Remove volunteer plants",
                "Maintain proper plant spacing",
            ],
        },
        "late_blight": {
            "name": "Late Blight",
            "description": "Dark water-soaked spots turning brown with white edges.",
            "pesticides": ["Mancozeb", "Chlorothalonil", "Metalaxyl"],
            "severity": "high",
            "treatment_timeline": "Apply fungicides every 7 days during favorable conditions",
            "preventive_measures": [
                "Plant resistant varieties",
                "Destroy volunteer plants",
                "Improve field drainage",
            ],
        },
    },
    "rice": {
        "bacterial_blight": {
            "name": "Bacterial Blight",
            "description": "Yellow to white lesions along leaf veins, which can merge and cause leaf death.",
            "pesticides": ["Streptomycin", "Copper oxychloride", "Kasugamycin"],
            "severity": "high",
            "treatment_timeline": "Apply bactericides immediately upon detection, repeat weekly",
            "preventive_measures": [
                "Use certified disease-free seeds",
                "Practice crop rotation",
                "Maintain field sanitation",
            ],
        },
        "blast": {
            "name": "Rice Blast",
            "description": "Diamond-shaped lesions with gray centers on leaves.",
            "pesticides": ["Tricyclazole", "Isoprothiolane", "Carbendazim"],
            "severity": "high",
            "treatment_timeline": "Apply fungicides at first sign of disease, repeat every 10-14 days",
            "preventive_measures": [
                "Use resistant varieties",
                "Maintain proper water management",
                "Avoid excessive nitrogen",
            ],
        },
    },
    "wheat": {
        "powdery_mildew": {
            "name": "Powdery Mildew",
            "description": "White powdery growth on leaves and stems",
            "pesticides": ["Sulfur", "Triadimefon", "Propiconazole"],
            "severity": "medium",
            "treatment_timeline": "Apply fungicides when disease first appears, repeat as needed",
            "preventive_measures": [
                "Maintain proper spacing",
                "Avoid excess nitrogen",
                "Remove infected plant debris",
            ],
        },
        "leaf_rust": {
            "name": "Leaf Rust",
            "description": "Orange-brown pustules scattered on leaves",
            "pesticides": ["Tebuconazole", "Propiconazole", "Azoxystrobin"],
            "severity": "high",
            "treatment_timeline": "Apply fungicides at first sign of disease, repeat every 14 days",
            "preventive_measures": [
                "Plant resistant varieties",
                "Early planting",
                "Monitor regularly for symptoms",
            ],
        },
    },
}


def get_disease(crop: Any, disease: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(crop, str) or not isinstance(disease, str):
        return None
    return DISEASE_DATABASE.get(crop, {}).get(disease)


def list_diseases(crop: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flat catalogue of profiles, optionally limited to one crop."""
    crops = [crop.strip().lower()] if crop else list(DISEASE_DATABASE.keys())
    out = []
    for crop_id in crops:
        for disease_id, info in DISEASE_DATABASE.get(crop_id, {}).items():
            out.append({"crop": crop_id, "disease": disease_id, **info})
    return out


def lookup_diseases(analysis: Any) -> Dict[str, Any]:
    """
    Resolve classifier detections against the reference table.

    analysis: {"diseases": [{"crop", "disease", "confidence"}], "primaryCrop", "primaryPart"}.
    Unknown crop/disease pairs are dropped; no matches means the plant is reported healthy.
    """
    if not isinstance(analysis, dict) or not isinstance(analysis.get("diseases"), list):
        raise ValueError("Invalid analysis data received")

    detected = []
    for detection in analysis["diseases"]:
        if not isinstance(detection, dict):
            continue
        info = get_disease(detection.get("crop"), detection.get("disease"))
        if info is None:
            continue
        confidence = detection.get("confidence")
        detected.append({
            "name": info["name"],
            "confidence": confidence,
            "details": {**info, "confidence": confidence},
        })

    result = {
        "status": "success",
        "detectedCrop": analysis.get("primaryCrop"),
        "detectedPart": analysis.get("primaryPart"),
        "hasDisease": bool(detected),
    }
    if detected:
        result["diseases"] = detected
    else:
        result["message"] = HEALTHY_MESSAGE
    return result
