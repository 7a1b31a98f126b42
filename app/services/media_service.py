from __future__ import annotations

import io
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import PurePosixPath
from typing import Any
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, ImageOps, UnidentifiedImageError

from app.core.config import (
    AWS_REGION,
    MEDIA_MAX_FILE_SIZE_MB,
    MEDIA_MAX_IMAGE_PIXELS,
    S3_BUCKET_NAME,
    S3_PUBLIC_BASE_URL,
    SIGNED_URL_EXPIRES_SECONDS,
)
from app.core.errors import AppError, create_error

logger = logging.getLogger(__name__)

Image.MAX_IMAGE_PIXELS = MEDIA_MAX_IMAGE_PIXELS

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")

ORIGINAL_PREFIX = "business-media/"
LOGO_PREFIX = "business-logos/"
PHOTO_PREFIX = "business-photos/"
TEMP_PREFIX = "temp-uploads/"

# (largura, altura, modo, qualidade JPEG)
PHOTO_VARIANTS = {
    "thumbnail": (150, 150, "cover", 80),
    "small": (300, 300, "inside", 85),
    "medium": (800, 800, "inside", 90),
    "large": (1600, 1600, "inside", 95),
}
LOGO_VARIANTS = {
    "thumbnail": (150, 150, "cover", 80),
    "small": (300, 300, "inside", 85),
    "medium": (800, 800, "inside", 90),
    "logo": (512, 512, "pad", 90),
}
ORIGINAL_QUALITY = 92

_MALICIOUS_PATTERNS = (
    re.compile(r"\.\."),
    re.compile(r'[<>:"|?*]'),
    re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\.|$)", re.IGNORECASE),
    re.compile(r"^\."),
    re.compile(r"\.(exe|bat|cmd|scr|vbs|js)(\.|$)", re.IGNORECASE),
)


def _get_s3_client():
    return boto3.client("s3", region_name=AWS_REGION)


def file_extension(filename: str) -> str:
    return PurePosixPath(filename or "").suffix.lower()


def contains_malicious_patterns(filename: str) -> bool:
    return any(pattern.search(filename or "") for pattern in _MALICIOUS_PATTERNS)


def validate_media_file(size: int, mimetype: str, filename: str) -> dict[str, Any]:
    errors: list[str] = []
    if size > MEDIA_MAX_FILE_SIZE_MB * 1024 * 1024:
        errors.append(f"File size exceeds maximum allowed size of {MEDIA_MAX_FILE_SIZE_MB}MB")
    if mimetype not in ALLOWED_MIME_TYPES:
        errors.append("Invalid file type. Only JPEG, PNG, WebP, and GIF images are allowed.")
    if file_extension(filename) not in ALLOWED_EXTENSIONS:
        errors.append("Invalid file extension. Only .jpg, .jpeg, .png, .webp, .gif files are allowed.")
    if contains_malicious_patterns(filename):
        errors.append("Filename contains invalid characters or patterns.")
    return {"is_valid": not errors, "errors": errors}


def original_key(business_id: str, media_id: str) -> str:
    return f"{ORIGINAL_PREFIX}{business_id}/{media_id}.jpg"


def variant_key(business_id: str, media_id: str, media_type: str, variant: str) -> str:
    prefix = LOGO_PREFIX if media_type == "logo" else PHOTO_PREFIX
    return f"{prefix}{business_id}/{media_id}_{variant}.jpg"


def temp_key(business_id: str, media_id: str, extension: str) -> str:
    return f"{TEMP_PREFIX}{business_id}/{media_id}{extension}"


def variants_for(media_type: str) -> dict[str, tuple[int, int, str, int]]:
    return LOGO_VARIANTS if media_type == "logo" else PHOTO_VARIANTS


def _to_rgb(image: Image.Image) -> Image.Image:
    image = ImageOps.exif_transpose(image)
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return image.convert("RGB")


def _resize(image: Image.Image, width: int, height: int, mode: str) -> Image.Image:
    if mode == "cover":
        return ImageOps.fit(image, (width, height), method=Image.Resampling.LANCZOS)
    if mode == "pad":
        return ImageOps.pad(image, (width, height), method=Image.Resampling.LANCZOS, color=(255, 255, 255))
    resized = image.copy()
    # thumbnail() nunca amplia a imagem
    resized.thumbnail((width, height), Image.Resampling.LANCZOS)
    return resized


def _jpeg_bytes(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def render_variants(data: bytes, media_type: str) -> tuple[bytes, dict[str, bytes]]:
    """Decode an uploaded image and return (normalized original, {variant: jpeg})."""
    with Image.open(io.BytesIO(data)) as source:
        source.seek(0)
        image = _to_rgb(source)
    original = _jpeg_bytes(image, ORIGINAL_QUALITY)
    rendered = {
        name: _jpeg_bytes(_resize(image, width, height, mode), quality)
        for name, (width, height, mode, quality) in variants_for(media_type).items()
    }
    return original, rendered


class MediaService:
    def __init__(self, client=None, bucket: str | None = None) -> None:
        self.client = client if client is not None else _get_s3_client()
        self.bucket = bucket if bucket is not None else S3_BUCKET_NAME
        if not self.bucket:
            raise RuntimeError("Variável de ambiente obrigatória ausente: S3_BUCKET_NAME")

    def public_url(self, key: str) -> str:
        if S3_PUBLIC_BASE_URL:
            return f"{S3_PUBLIC_BASE_URL}/{key}"
        return f"https://{self.bucket}.s3.{AWS_REGION}.amazonaws.com/{key}"

    def generate_signed_upload_url(
        self,
        business_id: str,
        filename: str,
        mimetype: str,
        media_type: str,
    ) -> dict[str, Any]:
        if mimetype not in ALLOWED_MIME_TYPES:
            raise create_error("Invalid file type. Only JPEG, PNG, WebP, and GIF images are allowed.", 400)
        extension = file_extension(filename)
        if extension not in ALLOWED_EXTENSIONS:
            raise create_error("Invalid file extension. Only .jpg, .jpeg, .png, .webp, .gif files are allowed.", 400)

        media_id = str(uuid4())
        key = temp_key(business_id, media_id, extension)
        upload_url = self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ContentType": mimetype,
                "Metadata": {
                    "businessId": str(business_id),
                    "mediaId": media_id,
                    "type": media_type,
                    "originalFilename": PurePosixPath(filename).name,
                },
            },
            ExpiresIn=SIGNED_URL_EXPIRES_SECONDS,
        )
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=SIGNED_URL_EXPIRES_SECONDS)
        logger.info("signed upload url issued business_id=%s media_id=%s type=%s", business_id, media_id, media_type)
        return {"uploadUrl": upload_url, "key": key, "mediaId": media_id, "expiresAt": expires_at.isoformat()}

    def _find_temp_key(self, business_id: str, media_id: str) -> str | None:
        # só aceita a chave exata emitida na URL assinada, nunca um prefixo parcial
        expected = {temp_key(business_id, media_id, extension) for extension in ALLOWED_EXTENSIONS}
        response = self.client.list_objects_v2(Bucket=self.bucket, Prefix=f"{TEMP_PREFIX}{business_id}/{media_id}.")
        for entry in response.get("Contents", []):
            if entry["Key"] in expected:
                return entry["Key"]
        return None

    def process_uploaded_media(
        self,
        business_id: str,
        media_id: str,
        media_type: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        source_key = self._find_temp_key(business_id, media_id)
        if not source_key:
            raise create_error("Uploaded media not found", 404)

        max_bytes = MEDIA_MAX_FILE_SIZE_MB * 1024 * 1024
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=source_key)
            if (obj.get("ContentLength") or 0) > max_bytes:
                raise create_error(f"File size exceeds maximum allowed size of {MEDIA_MAX_FILE_SIZE_MB}MB", 400)
            data = obj["Body"].read()
            if len(data) > max_bytes:
                raise create_error(f"File size exceeds maximum allowed size of {MEDIA_MAX_FILE_SIZE_MB}MB", 400)

            original, rendered = render_variants(data, media_type)

            self._put_jpeg(original_key(business_id, media_id), original, business_id, media_id, media_type, "original")
            urls: dict[str, str] = {"original": self.public_url(original_key(business_id, media_id))}
            for variant, payload in rendered.items():
                key = variant_key(business_id, media_id, media_type, variant)
                self._put_jpeg(key, payload, business_id, media_id, media_type, variant)
                urls[variant] = self.public_url(key)
        except AppError:
            self._cleanup_failed(business_id, media_id, media_type, source_key)
            raise
        except (
            ClientError,
            BotoCoreError,
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
        ) as exc:
            logger.exception("media processing failed business_id=%s media_id=%s", business_id, media_id)
            self._cleanup_failed(business_id, media_id, media_type, source_key)
            raise create_error(f"Failed to process uploaded media: {exc}", 500) from exc

        self._delete_key(source_key)

        item: dict[str, Any] = {
            "id": media_id,
            "businessId": str(business_id),
            "type": media_type,
            "originalUrl": urls["original"],
            "thumbnailUrl": urls["thumbnail"],
            "smallUrl": urls["small"],
            "mediumUrl": urls["medium"],
            "description": description,
            "order": 0,
            "fileSize": len(data),
            "mimetype": obj.get("ContentType") or "image/jpeg",
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        if media_type == "logo":
            item["logoUrl"] = urls["logo"]
        else:
            item["largeUrl"] = urls["large"]
        logger.info("media processed business_id=%s media_id=%s type=%s", business_id, media_id, media_type)
        return item

    def _put_jpeg(
        self,
        key: str,
        payload: bytes,
        business_id: str,
        media_id: str,
        media_type: str,
        variant: str,
    ) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=payload,
            ContentType="image/jpeg",
            Metadata={"businessId": str(business_id), "mediaId": media_id, "type": media_type, "variant": variant},
        )

    def _delete_key(self, key: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except (ClientError, BotoCoreError):
            logger.warning("failed to delete object key=%s", key, exc_info=True)
            return False

    def _cleanup_failed(self, business_id: str, media_id: str, media_type: str, source_key: str) -> None:
        self.delete_media_file(business_id, media_id, media_type)
        self._delete_key(source_key)

    def delete_media_file(self, business_id: str, media_id: str, media_type: str) -> None:
        keys = [original_key(business_id, media_id)]
        keys.extend(variant_key(business_id, media_id, media_type, variant) for variant in variants_for(media_type))
        for key in keys:
            self._delete_key(key)
