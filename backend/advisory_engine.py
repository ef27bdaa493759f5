"""
KrishiMitra - Weather-driven agronomic advisories.
Irrigation status, crop advice, risk alerts and suitable crops from current conditions.
Thresholds are fixed rules; temperatures in °C, humidity in %, precipitation in mm.
"""
from typing import Any, Dict, List

from crop_database import round_half_up

# Irrigation thresholds (wind in m/s)
HOT_TEMP = 32
DRY_HUMIDITY = 45
WINDY_SPEED = 5
COOL_TEMP = 10
HUMID_LEVEL = 80
SIGNIFICANT_RAIN = 1
LIGHT_RAIN = 0.1

MAX_CROP_ADVICE = 3

# Illustrative city -> state and typical crops
CITY_CROP_MAP: Dict[str, Dict[str, Any]] = {
    "hyderabad": {"state": "Telangana", "crops": ["Rice (Paddy)", "Cotton", "Maize", "Sorghum", "Groundnut"]},
    "mumbai": {"state": "Maharashtra", "crops": ["Rice (Coastal)", "Sorghum", "Bajra", "Sugarcane", "Cotton"]},
    "chennai": {"state": "Tamil Nadu", "crops": ["Rice", "Groundnut", "Sugarcane", "Cotton", "Coconut"]},
    "kolkata": {"state": "West Bengal", "crops": ["Rice", "Jute", "Potatoes", "Mustard", "Vegetables"]},
    "delhi": {"state": "Delhi NCR", "crops": ["Wheat", "Mustard", "Vegetables", "Bajra"]},
    "lucknow": {"state": "Uttar Pradesh", "crops": ["Wheat", "Sugarcane", "Rice", "Potatoes", "Mustard"]},
    "jaipur": {"state": "Rajasthan", "crops": ["Bajra", "Mustard", "Wheat", "Pulses", "Groundnut"]},
    "shimla": {"state": "Himachal Pradesh", "crops": ["Apples", "Potatoes", "Maize", "Wheat", "Barley"]},
    "bhopal": {"state": "Madhya Pradesh", "crops": ["Soybean", "Wheat", "Pulses", "Maize", "Cotton"]},
}


def irrigation_status(temp: float, humidity: float, wind_speed: float, precipitation: float) -> Dict[str, str]:
    """
    Irrigation status from current weather, first matching rule wins:
    recent rain > hot+dry+windy > hot+dry > hot > dry+windy > cool > humid > moderate.
    Returns {"status": str, "level": "info" | "warning" | "success"}.
    """
    if precipitation > SIGNIFICANT_RAIN:
        return {"status": "Recent significant rain. Irrigation likely unnecessary.", "level": "success"}
    if precipitation > LIGHT_RAIN:
        return {"status": "Light recent rain detected. Check soil moisture before irrigating.", "level": "success"}

    is_hot = temp > HOT_TEMP
    is_dry = humidity < DRY_HUMIDITY
    is_windy = wind_speed > WINDY_SPEED

    if is_hot and is_dry and is_windy:
        return {"status": "Hot, dry, and windy. High evaporation likely. Monitor soil urgently.", "level": "warning"}
    if is_hot and is_dry:
        return {"status": "Hot and dry conditions. Increased evaporation likely. Check soil moisture.", "level": "warning"}
    if is_hot:
        return {"status": "High temperatures detected. Monitor soil moisture closely.", "level": "warning"}
    if is_dry and is_windy:
        return {"status": "Dry and windy. Increased evaporation likely. Check soil moisture.", "level": "warning"}

    if temp < COOL_TEMP:
        return {"status": "Cool conditions reduce immediate need. Check soil before irrigating.", "level": "info"}
    if humidity > HUMID_LEVEL:
        return {"status": "High humidity reduces evaporation. Check soil moisture if needed.", "level": "info"}

    return {"status": "Conditions moderate. Monitor soil moisture and irrigate as needed.", "level": "info"}


def crop_advice(temp: float, humidity: float, wind_speed: float, crops: List[str]) -> List[str]:
    """Up to three advice lines for the suitable crops under current conditions."""
    if not crops or "Not suitable" in crops[0]:
        return ["Current conditions are not ideal for the primary listed crops."]
    crops_str = ", ".join(crops)
    advice = []

    if temp > 35:
        advice.append(f"Extreme Heat: High stress likely for {crops_str}. Ensure adequate water, consider shade.")
    elif temp > 30:
        advice.append(f"High Temperature: Increase watering frequency for {crops_str} if soil is dry.")

    if humidity > 85:
        advice.append(f"High Humidity: Increases fungal risk for {crops_str}. Ensure good air circulation.")

    if wind_speed > 12:
        advice.append(
            f"Strong Winds: Potential for physical damage or affecting spraying operations for {crops_str}."
        )

    if temp < 10:
        advice.append(
            f"Low Temperatures: Growth may slow for {crops_str}. Protect sensitive plants if frost is forecast."
        )

    if not advice:
        advice.append(f"Current conditions seem generally favorable for {crops_str}. Monitor forecasts.")

    return advice[:MAX_CROP_ADVICE]


def weather_alerts(temp: float, humidity: float, wind_speed: float) -> List[Dict[str, Any]]:
    """Independent threshold checks; each alert carries a message and three recommendations."""
    alerts = []

    if temp > 35:
        alerts.append({
            "type": "high_temperature",
            "severity": "high",
            "message": "Extreme heat conditions. Increase irrigation and provide shade for sensitive crops.",
            "recommendations": [
                "Water plants early morning or evening",
                "Apply mulch to retain moisture",
                "Monitor for heat stress symptoms",
            ],
        })
    elif temp > 30:
        alerts.append({
            "type": "high_temperature",
            "severity": "medium",
            "message": "High temperature conditions. Consider adjusting irrigation schedule.",
            "recommendations": [
                "Maintain regular watering schedule",
                "Check soil before watering",
                "Protect sensitive crops",
            ],
        })

    if temp < 5:
        alerts.append({
            "type": "low_temperature",
            "severity": "high",
            "message": "Potential frost conditions. Protect sensitive crops.",
            "recommendations": [
                "Cover vulnerable plants",
                "Ensure soil is moist (helps retain heat)",
                "Monitor forecasts closely",
            ],
        })

    if humidity > 85:
        alerts.append({
            "type": "high_humidity",
            "severity": "high",
            "message": "High humidity levels increase risk of fungal diseases.",
            "recommendations": [
                "Monitor for disease symptoms",
                "Ensure proper ventilation/spacing",
                "Consider preventative fungicide application if necessary",
            ],
        })

    if wind_speed > 15:
        alerts.append({
            "type": "high_wind",
            "severity": "medium",
            "message": "Strong winds may damage crops and affect spraying operations.",
            "recommendations": [
                "Delay pesticide/fertilizer application if possible",
                "Secure row covers or tunnels",
                "Check for physical damage to plants/structures",
            ],
        })

    return alerts


def suitable_crops(city: str, temp: float) -> List[str]:
    """Known city -> its typical crops; otherwise crops for the temperature band."""
    mapped = CITY_CROP_MAP.get(city.strip().lower())
    if mapped:
        return list(mapped["crops"])

    if temp < 5:
        return ["Conditions too cold for most common crops"]
    if temp < 15:
        return ["Wheat", "Barley", "Mustard", "Potatoes", "Carrots"]
    if temp < 25:
        return ["Maize", "Rice (Paddy)", "Soybean", "Tomatoes", "Beans"]
    if temp < 35:
        return ["Cotton", "Sorghum", "Groundnut", "Millet", "Sugarcane"]
    return ["Heat tolerant varieties (e.g., certain Millets, Dates)"]


def suitable_crops_for_conditions(temp: float, humidity: float, precipitation: float) -> List[str]:
    """Crops from overlapping temperature, humidity and rain rules, duplicates removed in order."""
    crops = []
    if 25 <= temp <= 35:
        crops += ["Cotton", "Sugarcane", "Rice"]
    if 20 <= temp <= 30:
        crops += ["Wheat", "Maize", "Soybean"]
    if 15 <= temp <= 25:
        crops += ["Potato", "Peas", "Tomato"]

    if 60 <= humidity <= 80:
        crops += ["Mushroom", "Tea", "Coffee"]

    if precipitation > 0:
        crops += ["Rice", "Jute", "Tea"]
    else:
        crops += ["Millet", "Sorghum", "Chickpea"]

    return list(dict.fromkeys(crops))


def field_conditions(temp: float, humidity: float, wind_kmh: float, precipitation: float) -> Dict[str, Any]:
    """Field-operation summary: irrigation suitability plus risks and recommendations (wind in km/h)."""
    status = "Suitable for irrigation"
    risks = []
    recommendations = []

    if precipitation > 0:
        status = "Not suitable for irrigation"
        risks.append("Rainfall may affect dry-field operations")
        recommendations.append("Delay fertilizer application to prevent runoff")
        recommendations.append("Hold off on pesticide application as rain may wash it away")

    if humidity > 80:
        risks.append("High humidity may increase disease risk")
        recommendations.append("Monitor crops for fungal diseases")
        recommendations.append("Ensure proper ventilation in greenhouses")

    if temp > 35:
        risks.append("High temperature stress on crops")
        recommendations.append("Consider additional irrigation")
        recommendations.append("Apply mulch to retain soil moisture")

    if wind_kmh > 20:
        risks.append("High wind speeds may damage crops")
        recommendations.append("Consider wind barriers if persistent")
        recommendations.append("Monitor for physical damage to plants")

    return {"irrigationStatus": status, "risks": risks, "recommendations": recommendations}


def estimated_soil_temperature(temp: float) -> int:
    """Rough soil temperature: two degrees below air."""
    return round_half_up(temp - 2)
