from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.responses import paginated_response, success_response
from app.deps import AuthenticatedUser, get_current_user, require_business_owner
from app.schemas.businesses import BusinessCreateRequest, BusinessSearchQuery, BusinessUpdateRequest, CategoryQuery
from app.services.business_service import BusinessService

router = APIRouter(prefix="/api/businesses", tags=["businesses"])


def get_business_service(db: Session = Depends(get_db)) -> BusinessService:
    return BusinessService(db)


@router.post("", status_code=201)
def create_business(
    payload: BusinessCreateRequest,
    user: AuthenticatedUser = Depends(require_business_owner),
    businesses: BusinessService = Depends(get_business_service),
):
    created = businesses.create_business(user.id, payload.model_dump(by_alias=True, exclude_none=True))
    return success_response(created, message="Business created successfully", status_code=201)


@router.get("")
def search_businesses(
    query: Annotated[BusinessSearchQuery, Query()],
    businesses: BusinessService = Depends(get_business_service),
):
    items, total, page, limit = businesses.search_businesses(**query.model_dump())
    return paginated_response(items, total_count=total, page=page, limit=limit)


@router.get("/my")
def my_businesses(
    user: AuthenticatedUser = Depends(get_current_user),
    businesses: BusinessService = Depends(get_business_service),
):
    return success_response(businesses.get_businesses_by_owner(user.id))


@router.get("/categories")
def list_categories(businesses: BusinessService = Depends(get_business_service)):
    return success_response(businesses.get_categories())


@router.get("/categories/{category}")
def businesses_by_category(
    category: str,
    query: Annotated[CategoryQuery, Query()],
    businesses: BusinessService = Depends(get_business_service),
):
    return success_response(businesses.get_businesses_by_category(category, query.limit))


@router.get("/{business_id}")
def get_business(business_id: UUID, businesses: BusinessService = Depends(get_business_service)):
    return success_response(businesses.get_business_by_id(str(business_id)))


@router.put("/{business_id}")
def update_business(
    business_id: UUID,
    payload: BusinessUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    businesses: BusinessService = Depends(get_business_service),
):
    updates = payload.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    updated = businesses.update_business(str(business_id), user.id, updates, is_admin=user.is_admin)
    return success_response(updated, message="Business updated successfully")


@router.delete("/{business_id}")
def delete_business(
    business_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    businesses: BusinessService = Depends(get_business_service),
):
    businesses.delete_business(str(business_id), user.id, is_admin=user.is_admin)
    return success_response(message="Business deleted successfully")
