from __future__ import annotations

BUSINESS_CATEGORIES = (
    "restaurants",
    "retail",
    "services",
    "health",
    "automotive",
    "beauty",
    "entertainment",
    "professional",
    "home_services",
)

CATEGORY_LABELS = {
    "restaurants": "Restaurants & Food",
    "retail": "Retail & Shopping",
    "services": "Professional Services",
    "health": "Health & Wellness",
    "automotive": "Automotive",
    "beauty": "Beauty & Personal Care",
    "entertainment": "Entertainment",
    "professional": "Professional",
    "home_services": "Home Services",
}


def normalize_category(category: str | None) -> str:
    value = (category or "").strip().lower().replace(" ", "_").replace("-", "_")
    if value not in BUSINESS_CATEGORIES:
        raise ValueError(f"Invalid category: {category}")
    return value
