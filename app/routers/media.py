from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends

from app.core.errors import create_error
from app.core.responses import success_response
from app.deps import AuthenticatedUser, get_current_user
from app.routers.businesses import get_business_service
from app.schemas.media import MediaProcessRequest, MediaReplaceRequest, MediaUploadRequest
from app.services.business_service import BusinessService
from app.services.media_service import MediaService, validate_media_file

router = APIRouter(prefix="/api/businesses", tags=["media"])
logger = logging.getLogger(__name__)


def get_media_service() -> MediaService:
    return MediaService()


@router.get("/{business_id}/media")
def list_media(business_id: UUID, businesses: BusinessService = Depends(get_business_service)):
    return success_response(businesses.get_business_media(str(business_id)))


@router.put("/{business_id}/media")
def replace_media(
    business_id: UUID,
    payload: MediaReplaceRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    businesses: BusinessService = Depends(get_business_service),
    media: MediaService = Depends(get_media_service),
):
    items = [item.model_dump(by_alias=True) for item in payload.media]
    updated, removed = businesses.replace_media(str(business_id), user.id, items, is_admin=user.is_admin)
    for item in removed:
        media.delete_media_file(str(business_id), item["id"], item.get("type", "photo"))
    return success_response(updated, message="Business media updated successfully")


@router.post("/{business_id}/media/upload-url")
def create_upload_url(
    business_id: UUID,
    payload: MediaUploadRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    businesses: BusinessService = Depends(get_business_service),
    media: MediaService = Depends(get_media_service),
):
    business = businesses.ensure_media_access(str(business_id), user.id, is_admin=user.is_admin)
    businesses.ensure_photo_capacity(business, payload.type)

    validation = validate_media_file(payload.file_size, payload.mimetype, payload.filename)
    if not validation["is_valid"]:
        raise create_error(", ".join(validation["errors"]), 400)

    signed = media.generate_signed_upload_url(str(business_id), payload.filename, payload.mimetype, payload.type)
    upload = {**signed, "type": payload.type, "description": payload.description}
    return success_response(upload, message="Upload URL generated successfully")


@router.post("/{business_id}/media/process", status_code=201)
def process_media(
    business_id: UUID,
    payload: MediaProcessRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    businesses: BusinessService = Depends(get_business_service),
    media: MediaService = Depends(get_media_service),
):
    business = businesses.ensure_media_access(str(business_id), user.id, is_admin=user.is_admin)
    businesses.ensure_photo_capacity(business, payload.type)

    item = media.process_uploaded_media(str(business_id), str(payload.media_id), payload.type, payload.description)
    _, replaced = businesses.add_media_item(str(business_id), item)
    for old in replaced:
        media.delete_media_file(str(business_id), old["id"], old.get("type", "logo"))
    return success_response(item, message="Media uploaded and processed successfully", status_code=201)


@router.delete("/{business_id}/media/{media_id}")
def delete_media(
    business_id: UUID,
    media_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    businesses: BusinessService = Depends(get_business_service),
    media: MediaService = Depends(get_media_service),
):
    businesses.ensure_media_access(str(business_id), user.id, is_admin=user.is_admin)
    removed = businesses.remove_media_item(str(business_id), media_id)
    media.delete_media_file(str(business_id), media_id, removed.get("type", "photo"))
    logger.info("media deleted business_id=%s media_id=%s", business_id, media_id)
    return success_response(message="Media deleted successfully")
