from __future__ import annotations

import math
from typing import Any

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from app.models.business import Business
from app.repositories.base import BaseRepository

MILES_PER_DEGREE_LAT = 69.0
LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    return value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", "\\%").replace("_", "\\_")


def bounding_box(lat: float, lng: float, radius_miles: float) -> tuple[float, float, float, float]:
    lat_delta = radius_miles / MILES_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(lat)), 0.01)
    lng_delta = radius_miles / (MILES_PER_DEGREE_LAT * cos_lat)
    return lat - lat_delta, lat + lat_delta, lng - lng_delta, lng + lng_delta


class BusinessRepository(BaseRepository[Business]):
    model = Business

    def __init__(self, db: Session) -> None:
        super().__init__(db)

    def find_by_owner(self, owner_id: str) -> list[Business]:
        return self.find_where(owner_id=str(owner_id), is_active=True)

    def find_active_by_name(self, owner_id: str, name: str) -> list[Business]:
        normalized = (name or "").strip().lower()
        return self.find_where(
            func.lower(func.trim(Business.name)) == normalized,
            owner_id=str(owner_id),
            is_active=True,
        )

    def listing_criteria(self, *, search: str | None = None, category: str | None = None) -> list[Any]:
        criteria: list[Any] = [Business.is_active.is_(True)]
        term = (search or "").strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            criteria.append(
                or_(
                    Business.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Business.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if category:
            # categories é uma lista JSON de slugs; casa o item inteiro com aspas
            criteria.append(cast(Business.categories, String).like(f'%"{escape_like(category)}"%', escape=LIKE_ESCAPE))
        return criteria

    def search_page(
        self,
        *,
        search: str | None = None,
        category: str | None = None,
        limit: int,
        offset: int,
    ) -> tuple[list[Business], int]:
        criteria = self.listing_criteria(search=search, category=category)
        return self.find_where(*criteria, limit=limit, offset=offset), self.count(*criteria)

    def search_nearby_candidates(
        self,
        *,
        lat: float,
        lng: float,
        radius: float,
        search: str | None = None,
        category: str | None = None,
    ) -> list[Business]:
        """Rows inside the radius bounding box; exact distance is computed by the caller."""
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius)
        return self.find_where(
            *self.listing_criteria(search=search, category=category),
            Business.latitude.isnot(None),
            Business.longitude.isnot(None),
            Business.latitude.between(min_lat, max_lat),
            Business.longitude.between(min_lng, max_lng),
        )

    def find_by_category(self, category: str, limit: int = 10) -> list[Business]:
        return self.find_where(*self.listing_criteria(category=category), limit=limit)

    def distinct_categories(self) -> list[str]:
        found: set[str] = set()
        for (categories,) in self.db.query(Business.categories).filter(Business.is_active.is_(True)).all():
            found.update(categories or [])
        return sorted(found)

    def deactivate(self, business_id: str) -> bool:
        return self.update(business_id, is_active=False) is not None
