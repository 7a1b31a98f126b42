from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy.orm import Session

from app.core.categories import CATEGORY_LABELS, normalize_category
from app.core.config import MAX_PHOTOS_PER_BUSINESS
from app.core.errors import create_error
from app.models.business import Business
from app.repositories.business_repository import BusinessRepository
from app.services.business_validation import (
    normalize_contact,
    normalize_location,
    valid_coordinates,
    validate_business_hours,
    validate_business_name,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959
DEFAULT_SEARCH_RADIUS_MILES = 25
MAX_SEARCH_LIMIT = 50


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def business_to_dto(business: Business, distance: float | None = None) -> dict[str, Any]:
    dto: dict[str, Any] = {
        "id": business.id,
        "owner_id": business.owner_id,
        "name": business.name,
        "description": business.description,
        "location": business.location or {},
        "categories": business.categories or [],
        "hours": business.hours or {},
        "contact": business.contact or {},
        "media": business.media or [],
        "services": business.services or [],
        "is_active": bool(business.is_active),
        "created_at": business.created_at,
        "updated_at": business.updated_at,
    }
    if distance is not None:
        dto["distance"] = round(distance, 2)
    return dto


def _sorted_media(media: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(media, key=lambda item: (item.get("type") != "logo", item.get("order", 0)))


def _coordinates_of(location: dict[str, Any] | None) -> tuple[float | None, float | None]:
    coords = (location or {}).get("coordinates") or {}
    if coords.get("lat") is None or coords.get("lng") is None:
        return None, None
    return float(coords["lat"]), float(coords["lng"])


class BusinessService:
    def __init__(self, db: Session) -> None:
        self.businesses = BusinessRepository(db)

    # ---------- validation ----------
    def _validate_name(self, name: str) -> None:
        errors = validate_business_name(name)
        if errors:
            raise create_error(f"Invalid business name: {', '.join(errors)}", 400)

    def _validate_hours(self, hours: dict[str, Any] | None) -> None:
        if not hours:
            return
        errors = validate_business_hours(hours)
        if errors:
            raise create_error(f"Invalid business hours: {', '.join(errors)}", 400)

    def _validate_categories(self, categories: list[str]) -> list[str]:
        try:
            return [normalize_category(category) for category in categories]
        except ValueError as exc:
            raise create_error(str(exc), 400) from exc

    def _prepare_location(self, location: dict[str, Any]) -> dict[str, Any]:
        normalized = normalize_location(location)
        coords = normalized.get("coordinates")
        if coords is not None and not valid_coordinates(coords.get("lat"), coords.get("lng")):
            raise create_error("Invalid location coordinates", 400)
        return normalized

    def _ensure_unique_name(self, owner_id: str, name: str, exclude_id: str | None = None) -> None:
        # best effort: not atomic with the insert/update that follows
        duplicates = [
            business
            for business in self.businesses.find_active_by_name(owner_id, name)
            if business.id != exclude_id
        ]
        if duplicates:
            raise create_error(
                f'A business with the name "{name.strip()}" already exists. Please choose a different name.',
                409,
            )

    def _get_or_404(self, business_id: str) -> Business:
        business = self.businesses.find_by_id(business_id)
        if not business:
            raise create_error("Business not found", 404)
        return business

    def _get_owned(self, business_id: str, user_id: str, is_admin: bool) -> Business:
        business = self.businesses.find_by_id(business_id)
        if not business or (not is_admin and business.owner_id != str(user_id)):
            raise create_error("Business not found or access denied", 404)
        return business

    # ---------- CRUD ----------
    def create_business(self, owner_id: str, data: dict[str, Any]) -> dict[str, Any]:
        name = (data.get("name") or "").strip()
        if not name or not data.get("location") or not data.get("categories"):
            raise create_error("Name, location, and at least one category are required", 400)

        self._validate_name(name)
        self._validate_hours(data.get("hours"))
        categories = self._validate_categories(data["categories"])
        location = self._prepare_location(data["location"])
        self._ensure_unique_name(owner_id, name)

        lat, lng = _coordinates_of(location)
        business = self.businesses.create(
            owner_id=str(owner_id),
            name=name,
            description=data.get("description"),
            location=location,
            latitude=lat,
            longitude=lng,
            categories=categories,
            hours=data.get("hours") or {},
            contact=normalize_contact(data.get("contact")),
            services=data.get("services") or [],
            media=[],
            is_active=True,
        )
        logger.info("business created business_id=%s owner_id=%s", business.id, owner_id)
        return business_to_dto(business)

    def get_business_by_id(self, business_id: str) -> dict[str, Any]:
        return business_to_dto(self._get_or_404(business_id))

    def update_business(
        self,
        business_id: str,
        user_id: str,
        updates: dict[str, Any],
        *,
        is_admin: bool = False,
    ) -> dict[str, Any]:
        business = self._get_owned(business_id, user_id, is_admin)
        values: dict[str, Any] = {}

        if "name" in updates and updates["name"] is not None:
            name = updates["name"].strip()
            self._validate_name(name)
            if name.lower() != (business.name or "").strip().lower():
                self._ensure_unique_name(business.owner_id, name, exclude_id=business.id)
            values["name"] = name
        if "description" in updates:
            values["description"] = updates["description"]
        if updates.get("location") is not None:
            location = self._prepare_location(updates["location"])
            values["location"] = location
            values["latitude"], values["longitude"] = _coordinates_of(location)
        if updates.get("categories") is not None:
            values["categories"] = self._validate_categories(updates["categories"])
        if updates.get("hours") is not None:
            self._validate_hours(updates["hours"])
            values["hours"] = updates["hours"]
        if updates.get("contact") is not None:
            values["contact"] = normalize_contact(updates["contact"])
        if updates.get("services") is not None:
            values["services"] = updates["services"]
        if updates.get("is_active") is not None:
            values["is_active"] = bool(updates["is_active"])

        if not values:
            return business_to_dto(business)

        updated = self.businesses.update(business.id, **values)
        if not updated:
            raise create_error("Failed to update business", 500)
        return business_to_dto(updated)

    def search_businesses(
        self,
        *,
        lat: float | None = None,
        lng: float | None = None,
        radius: float | None = None,
        category: str | None = None,
        search: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> tuple[list[dict[str, Any]], int, int, int]:
        """Returns ``(businesses, total_count, page, limit)`` after normalizing paging."""
        page = max(1, page or 1)
        limit = min(max(1, limit or 10), MAX_SEARCH_LIMIT)

        if lat is not None or lng is not None:
            if lat is None or lng is None:
                raise create_error("Both latitude and longitude are required for location search", 400)
            if not valid_coordinates(lat, lng):
                raise create_error("Invalid location coordinates", 400)
        if radius is not None and (radius < 1 or radius > 100):
            raise create_error("Radius must be between 1 and 100 miles", 400)

        category_filter = None
        if category:
            category_filter = self._validate_categories([category])[0]

        offset = (page - 1) * limit
        if lat is None or lng is None:
            rows, total_count = self.businesses.search_page(
                search=search,
                category=category_filter,
                limit=limit,
                offset=offset,
            )
            return [business_to_dto(business) for business in rows], total_count, page, limit

        search_radius = radius or DEFAULT_SEARCH_RADIUS_MILES
        candidates = self.businesses.search_nearby_candidates(
            lat=lat,
            lng=lng,
            radius=search_radius,
            search=search,
            category=category_filter,
        )
        # o bounding box é um quadrado; o raio exato sai do haversine
        nearby: list[tuple[Business, float]] = []
        for business in candidates:
            distance = haversine_miles(lat, lng, business.latitude, business.longitude)
            if distance <= search_radius:
                nearby.append((business, distance))
        nearby.sort(key=lambda pair: pair[1])

        page_items = nearby[offset:offset + limit]
        return [business_to_dto(business, distance) for business, distance in page_items], len(nearby), page, limit

    def get_businesses_by_owner(self, owner_id: str) -> list[dict[str, Any]]:
        return [business_to_dto(business) for business in self.businesses.find_by_owner(owner_id)]

    def get_businesses_by_category(self, category: str, limit: int = 10) -> list[dict[str, Any]]:
        normalized = self._validate_categories([category])[0]
        return [business_to_dto(business) for business in self.businesses.find_by_category(normalized, limit)]

    def get_categories(self) -> list[dict[str, str]]:
        return [
            {"value": category, "label": CATEGORY_LABELS.get(category, category)}
            for category in self.businesses.distinct_categories()
        ]

    def delete_business(self, business_id: str, user_id: str, *, is_admin: bool = False) -> None:
        business = self._get_owned(business_id, user_id, is_admin)
        if not self.businesses.deactivate(business.id):
            raise create_error("Failed to delete business", 500)
        logger.info("business deactivated business_id=%s by user_id=%s", business.id, user_id)

    # ---------- media ----------
    def ensure_media_access(self, business_id: str, user_id: str, *, is_admin: bool = False) -> Business:
        business = self._get_or_404(business_id)
        if not is_admin and business.owner_id != str(user_id):
            raise create_error("Access denied", 403)
        return business

    def get_business_media(self, business_id: str) -> list[dict[str, Any]]:
        return _sorted_media(self._get_or_404(business_id).media or [])

    def ensure_photo_capacity(self, business: Business, media_type: str) -> None:
        if media_type != "photo":
            return
        photos = [item for item in business.media or [] if item.get("type") == "photo"]
        if len(photos) >= MAX_PHOTOS_PER_BUSINESS:
            raise create_error(f"Maximum {MAX_PHOTOS_PER_BUSINESS} photos allowed per business", 400)

    def add_media_item(self, business_id: str, item: dict[str, Any]) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """Append a processed media item.

        A new logo replaces the previous one; the replaced items are returned so
        the caller can remove their stored files.
        """
        business = self._get_or_404(business_id)
        self.ensure_photo_capacity(business, item["type"])

        current = list(business.media or [])
        replaced: list[dict[str, Any]] = []
        if item["type"] == "logo":
            replaced = [media for media in current if media.get("type") == "logo"]
            current = [media for media in current if media.get("type") != "logo"]
            item = {**item, "order": 0}
        else:
            item = {**item, "order": sum(1 for media in current if media.get("type") == "photo")}

        updated = self.businesses.update(business.id, media=current + [item])
        return business_to_dto(updated), replaced

    def remove_media_item(self, business_id: str, media_id: str) -> dict[str, Any]:
        business = self._get_or_404(business_id)
        current = list(business.media or [])
        removed = next((media for media in current if media.get("id") == media_id), None)
        if removed is None:
            raise create_error("Media not found", 404)

        remaining = [dict(media) for media in current if media.get("id") != media_id]
        photo_index = 0
        for media in remaining:
            if media.get("type") == "photo":
                media["order"] = photo_index
                photo_index += 1
        self.businesses.update(business.id, media=remaining)
        return removed

    def replace_media(
        self,
        business_id: str,
        user_id: str,
        items: list[dict[str, Any]],
        *,
        is_admin: bool = False,
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """Reorder or drop existing media. Items not in the new list are returned as removed."""
        business = self._get_owned(business_id, user_id, is_admin)
        current = {media.get("id"): media for media in business.media or []}

        ids = [item.get("id") for item in items]
        if len(set(ids)) != len(ids):
            raise create_error("Duplicate media items", 400)
        unknown = [media_id for media_id in ids if media_id not in current]
        if unknown:
            raise create_error(f"Unknown media item: {', '.join(unknown)}", 400)
        kept_types = [current[media_id].get("type") for media_id in ids]
        if kept_types.count("logo") > 1:
            raise create_error("Only one logo allowed per business", 400)
        if kept_types.count("photo") > MAX_PHOTOS_PER_BUSINESS:
            raise create_error(f"Maximum {MAX_PHOTOS_PER_BUSINESS} photos allowed per business", 400)

        reordered: list[dict[str, Any]] = []
        photo_index = 0
        for item in items:
            stored = dict(current[item["id"]])
            if item.get("description") is not None:
                stored["description"] = item["description"]
            if stored.get("type") == "photo":
                stored["order"] = photo_index
                photo_index += 1
            reordered.append(stored)

        kept = set(ids)
        removed = [media for media_id, media in current.items() if media_id not in kept]
        updated = self.businesses.update(business.id, media=reordered)
        return business_to_dto(updated), removed
