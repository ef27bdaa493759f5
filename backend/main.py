"""
KrishiMitra - Agricultural assistance API for farmers and consumers.
FastAPI backend: crop recommendations, disease lookup, weather advisories, news,
fertilizer advice, registration and the produce storefront.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

import config
import advisory_engine
import news_client
import weather_client
from crop_database import get_crop, list_crops, parse_soil_input, recommend_crops, round_half_up
from disease_database import list_diseases, lookup_diseases
from fertilizer_advisor import parse_fertilizer_input, recommend_fertilizer
from image_processor import MAX_UPLOAD_BYTES, extract_color_features, simulate_predictions
from registration import register_consumer, register_farmer
from storefront import list_products, place_order, price_cart, render_invoice
from upstream import UpstreamError

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="KrishiMitra API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# --- Request/Response models ---
class Recommendation(BaseModel):
    name: str
    confidence: int
    expectedYield: str
    profitability: str
    details: str


class FertilizerResponse(BaseModel):
    suggestions: List[str]


class CartQuoteRequest(BaseModel):
    cart: Dict[str, Any] = Field(default_factory=dict)


class OrderRequest(BaseModel):
    cart: Dict[str, Any] = Field(default_factory=dict)
    customer: Optional[Dict[str, Any]] = None
    address: Optional[Dict[str, Any]] = None


def _require_weather_key(message: str = "Weather API key not configured") -> str:
    api_key = config.openweather_api_key()
    if not api_key:
        logger.error("OpenWeather API key is missing")
        raise HTTPException(status_code=500, detail=message)
    return api_key


def _positive_int(value: str, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid '{name}' parameter: must be a positive integer")
    if number < 1:
        raise HTTPException(status_code=400, detail=f"Invalid '{name}' parameter: must be a positive integer")
    return number


# --- Crops ---
@app.post("/api/crop-recommendation", response_model=List[Recommendation])
def crop_recommendation(body: Dict[str, Any] = Body(...)):
    """Top three crops for soil nutrients, pH and annual rainfall."""
    try:
        soil = parse_soil_input(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    recommendations = recommend_crops(soil)
    logger.info("Crop recommendation: %d crops above threshold", len(recommendations))
    return recommendations


@app.get("/api/crops")
def crops():
    return {"crops": list_crops()}


@app.get("/api/crops/{crop_id}")
def crop_detail(crop_id: str):
    crop = get_crop(crop_id)
    if crop is None:
        raise HTTPException(status_code=404, detail=f"Crop not found: {crop_id}")
    return crop


# --- Disease detection ---
@app.post("/api/disease-detection")
async def disease_detection(request: Request):
    """
    Look up detections produced by the browser classifier.
    Accepts a form with a 'predictions' JSON field, or the detections as a JSON body.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        raw = form.get("predictions")
        if not raw or not isinstance(raw, str):
            raise HTTPException(status_code=400, detail="Missing 'predictions' field in form data.")
        try:
            analysis = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid 'predictions' JSON")
    elif content_type.startswith("application/json"):
        try:
            analysis = await request.json()
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
    else:
        raise HTTPException(status_code=415, detail=f"Unsupported Content-Type: {content_type}")

    try:
        return lookup_diseases(analysis)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/disease-detection/image")
def disease_detection_image(file: UploadFile = File(...)):
    """Screen an uploaded leaf photo with the colour heuristic, then look the detections up."""
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Invalid image: file must be an image")

    contents = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(contents) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="Invalid image: file exceeds 5 MB")

    try:
        features = extract_color_features(contents)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = lookup_diseases(simulate_predictions(features))
    logger.info("Image screening for %s: hasDisease=%s", file.filename, result["hasDisease"])
    return {**result, "features": features}


@app.get("/api/diseases")
def diseases(crop: Optional[str] = Query(None, description="Crop id, e.g. tomato")):
    return {"diseases": list_diseases(crop)}


# --- Weather ---
@app.get("/api/weather")
def weather(city: Optional[str] = Query(None, description="City name")):
    """Current weather for a city with irrigation status, crop advice, alerts and a 24h outlook."""
    if not city or not city.strip():
        raise HTTPException(status_code=400, detail="City name is required")
    city = city.strip()
    api_key = _require_weather_key()

    try:
        current = weather_client.current_by_city(city, api_key)
        coord = current.get("coord") or {}
        forecast = weather_client.forecast_by_coords(coord.get("lat"), coord.get("lon"), api_key)
    except UpstreamError as e:
        raise HTTPException(status_code=500, detail=e.message)

    main = current["main"]
    temp = main["temp"]
    humidity = main["humidity"]
    wind_speed = (current.get("wind") or {}).get("speed", 0)
    precipitation = weather_client.rain_amount(current, "1h")
    conditions = (current.get("weather") or [{}])[0]

    crops = advisory_engine.suitable_crops(city, temp)
    return {
        "location": weather_client.location_name(current),
        "dt": current.get("dt"),
        "weather": {
            "temperature": round_half_up(temp),
            "feelsLike": round_half_up(main.get("feels_like", temp)),
            "humidity": humidity,
            "windSpeed": wind_speed,
            "description": conditions.get("description"),
            "icon": conditions.get("icon"),
            "precipitation": precipitation,
            "estimatedSoilTemp": advisory_engine.estimated_soil_temperature(temp),
        },
        "suitableCrops": crops,
        "irrigationStatus": advisory_engine.irrigation_status(temp, humidity, wind_speed, precipitation),
        "cropAdvice": advisory_engine.crop_advice(temp, humidity, wind_speed, crops),
        "forecast": weather_client.hourly_outlook(forecast),
        "alerts": advisory_engine.weather_alerts(temp, humidity, wind_speed),
    }


@app.get("/api/weather/current")
def weather_current(
    lat: Optional[str] = Query(None, description="Latitude"),
    lon: Optional[str] = Query(None, description="Longitude"),
    city: Optional[str] = Query(None, description="City name shown as the location"),
):
    """Current conditions, a 5-day outlook and field-operation advice for a location."""
    if not lat or not lon or not city:
        raise HTTPException(status_code=400, detail="Latitude, longitude, and city name are required")
    api_key = _require_weather_key("Weather API key is not configured")

    try:
        current = weather_client.current_by_coords(lat, lon, api_key)
        forecast = weather_client.forecast_by_coords(lat, lon, api_key)
    except UpstreamError as e:
        raise HTTPException(status_code=500, detail=e.message)

    main = current["main"]
    temp = main["temp"]
    humidity = main["humidity"]
    precipitation = weather_client.rain_amount(current, "1h")
    wind_kmh = (current.get("wind") or {}).get("speed", 0) * weather_client.MS_TO_KMH
    conditions = (current.get("weather") or [{}])[0]

    field = advisory_engine.field_conditions(temp, humidity, wind_kmh, precipitation)
    return {
        "location": city,
        "temp": temp,
        "temp_min": main.get("temp_min"),
        "temp_max": main.get("temp_max"),
        "humidity": humidity,
        "description": conditions.get("description"),
        "icon": conditions.get("icon"),
        "windSpeed": wind_kmh,
        "precipitation": precipitation,
        "soilTemp": round_half_up((temp + main.get("temp_min", temp)) / 2),
        "forecast": weather_client.daily_summaries(forecast),
        "agricultural": {
            "irrigationStatus": field["irrigationStatus"],
            "risks": field["risks"],
            "suitableCrops": advisory_engine.suitable_crops_for_conditions(temp, humidity, precipitation),
            "recommendations": field["recommendations"],
        },
    }


@app.get("/api/weather/forecast")
def weather_forecast(
    lat: Optional[str] = Query(None, description="Latitude"),
    lon: Optional[str] = Query(None, description="Longitude"),
):
    """Seven-day daily forecast with the reverse-geocoded location name."""
    if not lat or not lon:
        raise HTTPException(status_code=400, detail="Latitude and longitude are required")
    api_key = _require_weather_key()

    try:
        location = weather_client.reverse_geocode(lat, lon, config.geocoding_api_key())
        daily = weather_client.daily_forecast(lat, lon, api_key)
    except UpstreamError as e:
        logger.error("Weather forecast failed: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to fetch weather forecast")

    return {"location": location, "forecast": weather_client.daily_outlook(daily)}


@app.get("/api/weather/live")
def weather_live(
    lat: Optional[str] = Query(None, description="Latitude"),
    lon: Optional[str] = Query(None, description="Longitude"),
    city: Optional[str] = Query(None, description="City name shown as the location"),
):
    """Today's conditions followed by one entry per upcoming day."""
    if not lat or not lon or not city:
        raise HTTPException(status_code=400, detail="Latitude, longitude, and city name are required")
    api_key = _require_weather_key()

    try:
        current = weather_client.current_by_coords(lat, lon, api_key)
        forecast = weather_client.forecast_by_coords(lat, lon, api_key)
    except UpstreamError as e:
        logger.error("Live weather failed: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to fetch weather data")

    return {"location": city, "forecast": weather_client.live_outlook(current, forecast)}


@app.get("/api/weather/test")
def weather_test():
    """Check that the configured OpenWeather key is accepted."""
    api_key = config.openweather_api_key()
    if not api_key:
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "message": "OpenWeather API key is not configured in environment variables",
            },
        )

    try:
        status_code, data = weather_client.probe(api_key)
    except UpstreamError as e:
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "message": e.message,
                "details": "An unexpected error occurred while testing the API key",
            },
        )

    if 200 <= status_code < 300:
        return {
            "status": "success",
            "message": "API key is working correctly",
            "data": weather_client.current_snapshot(data),
        }
    logger.error("API test failed: %s", data)
    message = data.get("message") if isinstance(data, dict) else None
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "message": message or "API key validation failed",
            "code": status_code,
            "details": "Please ensure your API key is correct and activated",
        },
    )


# --- News ---
@app.get("/api/news")
def news(
    q: str = Query(news_client.DEFAULT_QUERY, description="Search query"),
    category: Optional[str] = Query(None, description="policy, technology, climate, market, crops or all"),
    page: str = Query("1", description="Page number"),
    max_articles: str = Query("9", alias="max", description="Articles per page"),
):
    """Indian agriculture news from GNews with fallback images and categories."""
    api_key = config.gnews_api_key()
    if not api_key:
        logger.error("GNEWS_API_KEY is not set")
        raise HTTPException(status_code=500, detail="News API key not configured on server.")

    page_number = _positive_int(page, "page")
    per_page = _positive_int(max_articles, "max")
    try:
        return news_client.search_news(api_key, q or news_client.DEFAULT_QUERY, category, page_number, per_page)
    except UpstreamError as e:
        raise HTTPException(status_code=500, detail=e.message)


# --- Fertilizer ---
@app.post("/api/fertilizer-recommendation", response_model=FertilizerResponse)
def fertilizer_recommendation(body: Dict[str, Any] = Body(...)):
    """Gemini-generated fertilizer suggestions for a soil test and intended crop."""
    try:
        soil = parse_fertilizer_input(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    api_key = config.gemini_api_key()
    if not api_key:
        logger.error("GEMINI_API_KEY is not set")
        raise HTTPException(status_code=500, detail="AI API key not configured on server.")

    try:
        suggestions = recommend_fertilizer(soil, api_key)
    except Exception as e:
        logger.exception("Fertilizer recommendation failed")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to get fertilizer recommendation")
    return {"suggestions": suggestions}


# --- Registration ---
@app.post("/api/consumer/register")
def consumer_register(body: Dict[str, Any] = Body(...)):
    try:
        return register_consumer(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/register")
def farmer_register(body: Dict[str, Any] = Body(...)):
    try:
        return register_farmer(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Storefront ---
@app.get("/api/products")
def products():
    return {"products": list_products()}


@app.post("/api/cart/quote")
def cart_quote(body: CartQuoteRequest):
    """Price a cart: line totals, subtotal, delivery charges and total."""
    try:
        return price_cart(body.cart)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/orders")
def create_order(body: OrderRequest):
    """Validate and acknowledge an order. Orders are not stored."""
    try:
        order = place_order(body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("Order %s placed: total %s", order["orderId"], order["total"])
    return order


@app.post("/api/orders/invoice", response_class=Response)
def order_invoice(body: OrderRequest):
    """Invoice PDF for an order."""
    try:
        order = place_order(body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(
        content=render_invoice(order),
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="KrishiMitra-Invoice.pdf"'},
    )


@app.get("/health")
def health():
    return {
        "status": "active",
        "version": app.version,
        "features": [
            "crop_recommendation",
            "disease_detection",
            "weather",
            "news",
            "fertilizer_recommendation",
            "registration",
            "storefront",
        ],
    }
