"""
KrishiMitra - Fertilizer advice generated with Gemini.
Soil test values and the intended crop go into a fixed prompt; the reply is split into
one suggestion per line.
"""
import logging
import re
from typing import Any, Dict, List

import google.generativeai as genai

import config
from crop_database import to_number

logger = logging.getLogger(__name__)

BULLET_PREFIX = re.compile(r"^[*-]\s*")

PROMPT_TEMPLATE = """
You are an agricultural expert providing fertilizer recommendations.
Given the following soil test results and the intended crop, provide practical fertilizer advice.

Soil Nitrogen (N): {n} ppm (or kg/ha, assume standard units)
Soil Phosphorus (P): {p} ppm (or kg/ha)
Soil Potassium (K): {k} ppm (or kg/ha)
Soil pH: {ph}
Intended Crop: {crop}

Based on general nutrient requirements for {crop} and the provided soil data:
1. State whether N, P, and K levels appear Low, Adequate, or High for this crop.
2. Suggest specific actions to correct deficiencies (e.g., "Increase Nitrogen application").
3. Recommend common fertilizer types suitable for correcting these deficiencies (e.g., Urea for N, DAP for P, MOP for K). Mention balanced NPK fertilizers if appropriate.
4. Briefly mention any potential issues related to the pH level for {crop}.

Keep the recommendations concise and practical for a farmer. Format the output as a simple list of suggestions (e.g., using bullet points or numbered list). Do not include greetings or conversational filler.
"""


def parse_fertilizer_input(body: Dict[str, Any]) -> Dict[str, Any]:
    """Validate {nitrogen, phosphorus, potassium, ph, cropName}. Raises ValueError with a client-facing message."""
    raw = [body.get(f) for f in ("nitrogen", "phosphorus", "potassium", "ph")]
    crop_name = body.get("cropName")
    if any(v is None or v == "" for v in raw) or not crop_name or not str(crop_name).strip():
        raise ValueError("Missing required fields: N, P, K, pH, and Crop Name are required.")
    numbers = [to_number(v) for v in raw]
    if any(v is None for v in numbers):
        raise ValueError("Invalid input: N, P, K, and pH values must be numbers.")
    n, p, k, ph = numbers
    if ph < 0 or ph > 14:
        raise ValueError("Invalid input: pH value must be between 0 and 14.")
    return {"nitrogen": n, "phosphorus": p, "potassium": k, "ph": ph, "cropName": str(crop_name).strip()}


def _fmt(value: float) -> str:
    """Whole numbers without a trailing .0, anything else at full precision."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def build_prompt(soil: Dict[str, Any]) -> str:
    return PROMPT_TEMPLATE.format(
        n=_fmt(soil["nitrogen"]),
        p=_fmt(soil["phosphorus"]),
        k=_fmt(soil["potassium"]),
        ph=_fmt(soil["ph"]),
        crop=soil["cropName"],
    )


def parse_suggestions(text: str) -> List[str]:
    """One suggestion per non-empty line, leading '*' / '-' bullets removed."""
    lines = (BULLET_PREFIX.sub("", line.strip()) for line in (text or "").split("\n"))
    return [line for line in lines if line]


def _generate_text(prompt: str, api_key: str) -> str:
    genai.configure(api_key=api_key)
    model = genai.GenerativeModel(config.gemini_model_name())
    response = model.generate_content(prompt)
    if not response.text:
        raise ValueError("No response from Gemini API")
    return response.text


def recommend_fertilizer(soil: Dict[str, Any], api_key: str) -> List[str]:
    """Generate fertilizer suggestions for validated soil input."""
    prompt = build_prompt(soil)
    logger.debug("Sending prompt to Gemini:\n%s", prompt)
    text = _generate_text(prompt, api_key)
    logger.debug("Raw response from Gemini:\n%s", text)
    suggestions = parse_suggestions(text)
    logger.info("Parsed %d fertilizer suggestions for %s", len(suggestions), soil["cropName"])
    return suggestions
