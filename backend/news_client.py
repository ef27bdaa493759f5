"""
KrishiMitra - GNews search proxy.
Searches Indian English-language agriculture news and fills in fallback images and
keyword-based categories for articles that lack them.
"""
import logging
from typing import Any, Dict, List, Optional

import config
from upstream import UpstreamError, fetch, response_json

logger = logging.getLogger(__name__)

SERVICE = "GNews"
DEFAULT_QUERY = "agriculture"

_PEXELS = "https://images.pexels.com/photos/{id}/pexels-photo-{id}.jpeg?auto=compress&cs=tinysrgb&w=600"
DEFAULT_IMAGE = _PEXELS.format(id=2668314)

# category -> (query keywords for the fallback image, fallback image)
FALLBACK_IMAGES = [
    ("policy", ("policy", "subsidy", "government"), _PEXELS.format(id=6077326)),
    ("technology", ("technology", "tractor", "drone"), _PEXELS.format(id=145685)),
    ("climate", ("climate", "weather", "monsoon"), _PEXELS.format(id=414498)),
    ("market", ("market", "prices", "msp"), _PEXELS.format(id=7567230)),
    ("crops", ("crops", "harvest", "pests"), _PEXELS.format(id=4033148)),
]

# detected category -> (article text keywords, query keyword)
CATEGORY_KEYWORDS = [
    ("Policy", ("policy", "subsidy", "government", "msp"), "policy"),
    ("Technology", ("technology", "innovation", "tractor", "drone"), "technology"),
    ("Climate", ("climate", "weather", "monsoon", "rainfall"), "climate"),
    ("Market", ("market", "price", "export", "import"), "market"),
    ("Crops", ("crop", "harvest", "pests", "soil"), "crops"),
]


def fallback_image(query: str, category: Optional[str]) -> str:
    """Stock image picked by category filter or query keywords."""
    lower_query = query.lower()
    lower_category = category.lower() if category else None
    for name, keywords, image in FALLBACK_IMAGES:
        if lower_category == name or any(k in lower_query for k in keywords):
            return image
    return DEFAULT_IMAGE


def detect_category(title: str, description: str, query: str, category: Optional[str]) -> str:
    """Filter category when one was requested, else the first keyword match, else 'General'."""
    if category and category != "all":
        return category
    text = f"{title or ''} {description or ''}".lower()
    lower_query = query.lower()
    for name, keywords, query_keyword in CATEGORY_KEYWORDS:
        if any(k in text for k in keywords) or query_keyword in lower_query:
            return name
    return "General"


def build_query(query: str, category: Optional[str]) -> str:
    if category and category != "all":
        return f"{query} AND {category}"
    return query


def search_news(
    api_key: str,
    query: str = DEFAULT_QUERY,
    category: Optional[str] = None,
    page: int = 1,
    max_articles: int = 9,
) -> Dict[str, Any]:
    """
    Search GNews and decorate each article with an image and category.
    Raises UpstreamError when GNews rejects the request.
    """
    params = {
        "lang": "en",
        "country": "in",
        "apikey": api_key,
        "max": max_articles,
        "page": page,
        "q": build_query(query, category),
    }
    response = fetch(f"{config.GNEWS_BASE_URL}/search", params, SERVICE)
    data = response_json(response)
    if not response.ok:
        logger.error("GNews API error: %s", data)
        errors = data.get("errors") if isinstance(data, dict) else None
        if isinstance(errors, dict):
            errors = list(errors.values())
        reason = ", ".join(str(e) for e in errors) if errors else response.reason
        raise UpstreamError(f"Failed to fetch news: {reason}", response.status_code)

    articles: List[Dict[str, Any]] = []
    for article in data.get("articles", []):
        articles.append({
            **article,
            "image": article.get("image") or fallback_image(query, category),
            "category": detect_category(article.get("title", ""), article.get("description", ""), query, category),
        })
    return {"articles": articles, "totalArticles": data.get("totalArticles", len(articles))}
