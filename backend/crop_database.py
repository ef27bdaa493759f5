"""
KrishiMitra - Crop Recommendation Engine
Rule-based crop suitability from soil nutrients (N, P, K), pH and annual rainfall.
Each crop is scored against its static requirement bands; no external AI API required.
"""

import math
from typing import List, Dict, Any, Optional

# --- Rainfall bands per water requirement (mm/year) ---
# Unknown water requirement falls back to Medium
RAINFALL_REQUIREMENTS: Dict[str, Dict[str, float]] = {
    "Very High": {"min": 1500, "optimal": 2000, "max": 3000},
    "High": {"min": 1000, "optimal": 1500, "max": 2000},
    "Medium": {"min": 700, "optimal": 1000, "max": 1500},
    "Low": {"min": 350, "optimal": 700, "max": 1000},
}

# Equal weight for N, P, K, pH and rainfall
SCORE_WEIGHT = 0.2
MAX_SCORE = 100
MIN_RECOMMENDABLE_SCORE = 50
MAX_RECOMMENDATIONS = 3

SOIL_FIELDS = ("nitrogen", "phosphorus", "potassium", "ph", "rainfall")


# --- Crop Database ---
# Each crop has: id, name, N/P/K/pH requirement bands, yield range (tons/hectare),
# states, seasons, water requirement category, investment per acre (INR)

CROP_DATABASE: List[Dict[str, Any]] = [
    {
        "id": "rice",
        "name": "Rice",
        "requirements": {
            "nitrogen": {"min": 60, "max": 120},
            "phosphorus": {"min": 30, "max": 60},
            "potassium": {"min": 30, "max": 60},
            "ph": {"min": 5.5, "max": 7.5},
        },
        "yield": {"min": 3.5, "max": 6.5},
        "states": [
            "andhra-pradesh", "telangana", "tamil-nadu", "kerala", "karnataka",
            "punjab", "haryana", "bihar", "west-bengal",
        ],
        "seasons": ["kharif", "rabi"],
        "water_requirement": "High",
        "investment_per_acre": 25000,
    },
    {
        "id": "wheat",
        "name": "Wheat",
        "requirements": {
            "nitrogen": {"min": 100, "max": 150},
            "phosphorus": {"min": 50, "max": 80},
            "potassium": {"min": 40, "max": 70},
            "ph": {"min": 6.0, "max": 7.5},
        },
        "yield": {"min": 3.0, "max": 5.5},
        "states": ["punjab", "haryana", "uttar-pradesh", "madhya-pradesh", "rajasthan", "bihar"],
        "seasons": ["rabi"],
        "water_requirement": "Medium",
        "investment_per_acre": 20000,
    },
    {
        "id": "cotton",
        "name": "Cotton",
        "requirements": {
            "nitrogen": {"min": 80, "max": 120},
            "phosphorus": {"min": 40, "max": 60},
            "potassium": {"min": 40, "max": 80},
            "ph": {"min": 6.0, "max": 8.0},
        },
        "yield": {"min": 1.5, "max": 2.5},
        "states": ["gujarat", "maharashtra", "telangana", "andhra-pradesh", "punjab", "haryana"],
        "seasons": ["kharif"],
        "water_requirement": "Medium",
        "investment_per_acre": 35000,
    },
    {
        "id": "sugarcane",
        "name": "Sugarcane",
        "requirements": {
            "nitrogen": {"min": 150, "max": 200},
            "phosphorus": {"min": 60, "max": 100},
            "potassium": {"min": 50, "max": 90},
            "ph": {"min": 6.0, "max": 7.5},
        },
        "yield": {"min": 60, "max": 100},
        "states": ["uttar-pradesh", "maharashtra", "karnataka", "tamil-nadu", "bihar"],
        "seasons": ["spring", "autumn"],
        "water_requirement": "Very High",
        "investment_per_acre": 45000,
    },
    {
        "id": "maize",
        "name": "Maize",
        "requirements": {
            "nitrogen": {"min": 120, "max": 160},
            "phosphorus": {"min": 50, "max": 80},
            "potassium": {"min": 40, "max": 80},
            "ph": {"min": 5.5, "max": 7.5},
        },
        "yield": {"min": 4.0, "max": 8.0},
        "states": ["karnataka", "andhra-pradesh", "telangana", "rajasthan", "madhya-pradesh"],
        "seasons": ["kharif", "rabi"],
        "water_requirement": "Medium",
        "investment_per_acre": 22000,
    },
]


def list_crops() -> List[Dict[str, Any]]:
    return CROP_DATABASE


def get_crop(crop_id: str) -> Optional[Dict[str, Any]]:
    key = crop_id.strip().lower()
    for crop in CROP_DATABASE:
        if crop["id"] == key:
            return crop
    return None


# --- Input parsing ---

def to_number(value: Any) -> Optional[float]:
    """Number or numeric string -> float. None when missing, non-numeric or not finite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def parse_soil_input(body: Dict[str, Any]) -> Dict[str, float]:
    """
    Validate a crop recommendation request body.
    Raises ValueError with a client-facing message on invalid input.
    """
    values = {field: to_number(body.get(field)) for field in SOIL_FIELDS}
    if any(v is None for v in values.values()):
        raise ValueError("Invalid input: All values must be numbers.")
    if all(v == 0 for v in values.values()):
        raise ValueError("Invalid input: Cannot generate recommendations with all zero values.")
    if values["ph"] < 0 or values["ph"] > 14:
        raise ValueError("Invalid input: pH value must be between 0 and 14.")
    return values


# --- Sub-scores (each 0.0 to 1.0) ---

def nutrient_score(value: float, requirement: Dict[str, float]) -> float:
    """1.0 inside [min, max]; scaled down by how far outside the band the value falls."""
    if value < requirement["min"]:
        return max(0.0, value / requirement["min"])
    if value > requirement["max"]:
        return requirement["max"] / value
    return 1.0


def ph_score(ph: float, requirement: Dict[str, float]) -> float:
    """1.0 inside the band; outside it, distance from the band midpoint relative to the half-width."""
    if requirement["min"] <= ph <= requirement["max"]:
        return 1.0
    mid = (requirement["min"] + requirement["max"]) / 2
    distance = abs(ph - mid)
    max_distance = max(abs(requirement["max"] - mid), abs(requirement["min"] - mid))
    return max(0.0, 1.0 - distance / max_distance)


def rainfall_score(rainfall: float, water_requirement: str) -> float:
    """
    Score annual rainfall against the crop's water band.
    Rises towards the optimum from below and falls away past it.
    """
    band = RAINFALL_REQUIREMENTS.get(water_requirement, RAINFALL_REQUIREMENTS["Medium"])
    if rainfall < band["min"]:
        return max(0.0, rainfall / band["min"])
    if rainfall > band["max"]:
        return band["max"] / rainfall
    if rainfall <= band["optimal"]:
        return rainfall / band["optimal"]
    return band["optimal"] / rainfall


def round_half_up(value: float) -> int:
    """Halves round up (2.5 -> 3, -2.5 -> -2), unlike round()."""
    return int(math.floor(value + 0.5))


def crop_score(soil: Dict[str, float], crop: Dict[str, Any]) -> int:
    """Composite 0-100 suitability of a crop for the given soil and rainfall."""
    req = crop["requirements"]
    total = (
        nutrient_score(soil["nitrogen"], req["nitrogen"])
        + nutrient_score(soil["phosphorus"], req["phosphorus"])
        + nutrient_score(soil["potassium"], req["potassium"])
        + ph_score(soil["ph"], req["ph"])
        + rainfall_score(soil["rainfall"], crop["water_requirement"])
    )
    return round_half_up(total * SCORE_WEIGHT * MAX_SCORE)


# --- Result decoration ---

def expected_yield(crop: Dict[str, Any], score: float) -> str:
    """Linear interpolation across the crop's yield range."""
    low, high = crop["yield"]["min"], crop["yield"]["max"]
    value = low + (high - low) * (score / 100)
    return f"{value:.1f} tons/hectare"


def profitability_rating(score: float) -> str:
    if score >= 80:
        return "High"
    if score >= 70:
        return "Medium-High"
    if score >= 60:
        return "Medium"
    return "Low"


def recommendation_details(crop: Dict[str, Any], score: float, soil: Dict[str, float]) -> str:
    details = f"{crop['name']} is "
    if score >= 80:
        details += "highly suitable for your soil conditions. "
    elif score >= 60:
        details += "moderately suitable for your soil conditions. "
    else:
        details += "marginally suitable but can be grown with proper management. "

    req = crop["requirements"]
    if soil["nitrogen"] < req["nitrogen"]["min"]:
        details += "Consider increasing nitrogen application. "
    if soil["phosphorus"] < req["phosphorus"]["min"]:
        details += "Phosphorus supplementation recommended. "
    if soil["potassium"] < req["potassium"]["min"]:
        details += "Additional potassium may be needed. "

    details += f"Water requirement is {crop['water_requirement'].lower()}. "
    details += f"Typical investment needed is ₹{crop['investment_per_acre']:,} per acre."
    return details


def recommend_crops(soil: Dict[str, float]) -> List[Dict[str, Any]]:
    """
    Recommend up to three crops for validated soil input.

    Args:
        soil: nitrogen, phosphorus, potassium (ppm), ph and rainfall (mm/year), as
            returned by parse_soil_input

    Returns:
        List of {name, confidence, expectedYield, profitability, details}, best first.
        Crops scoring 50 or below are left out.
    """
    recommendations = []
    for crop in CROP_DATABASE:
        score = crop_score(soil, crop)
        if score <= MIN_RECOMMENDABLE_SCORE:
            continue
        recommendations.append({
            "name": crop["name"],
            "confidence": score,
            "expectedYield": expected_yield(crop, score),
            "profitability": profitability_rating(score),
            "details": recommendation_details(crop, score, soil),
        })

    # Stable sort keeps table order between equal scores
    recommendations.sort(key=lambda r: r["confidence"], reverse=True)
    return recommendations[:MAX_RECOMMENDATIONS]
