import io

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from app.core.errors import AppError
from app.services import media_service
from app.services.media_service import (
    MediaService,
    contains_malicious_patterns,
    render_variants,
    validate_media_file,
    variant_key,
)

BUSINESS_ID = "0f6c3a52-3f7e-4a53-9d53-3f0d4f1b2a10"
MEDIA_ID = "5d6f7a8b-1c2d-4e3f-9a0b-1c2d3e4f5a6b"


class _Body:
    def __init__(self, data: bytes):
        self._data = data
        self.reads = 0

    def read(self):
        self.reads += 1
        return self._data


class FakeS3Client:
    def __init__(self):
        self.objects: dict[str, dict] = {}
        self.deleted: list[str] = []
        self.presigned: list[dict] = []
        self.fail_puts = False
        self.bodies: list[_Body] = []

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.presigned.append({"operation": operation, "params": Params, "expires": ExpiresIn})
        return f"https://signed.example/{Params['Key']}"

    def list_objects_v2(self, Bucket, Prefix):
        keys = sorted(key for key in self.objects if key.startswith(Prefix))
        return {"Contents": [{"Key": key} for key in keys]} if keys else {}

    def get_object(self, Bucket, Key):
        stored = self.objects[Key]
        body = _Body(stored["Body"])
        self.bodies.append(body)
        return {
            "Body": body,
            "ContentType": stored.get("ContentType"),
            "ContentLength": stored.get("ContentLength", len(stored["Body"])),
        }

    def put_object(self, Bucket, Key, Body, ContentType, Metadata=None):
        if self.fail_puts:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.objects[Key] = {"Body": Body, "ContentType": ContentType, "Metadata": Metadata or {}}

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)
        self.objects.pop(Key, None)


def _png_bytes(size=(1200, 600), mode="RGBA"):
    buffer = io.BytesIO()
    Image.new(mode, size, (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def _service(client=None):
    return MediaService(client=client or FakeS3Client(), bucket="buy-locals-media")


def test_validate_media_file_accepts_supported_image():
    assert validate_media_file(1024, "image/png", "logo.png") == {"is_valid": True, "errors": []}


def test_validate_media_file_collects_every_error():
    result = validate_media_file(20 * 1024 * 1024, "application/pdf", "menu.pdf")

    assert result["is_valid"] is False
    assert result["errors"] == [
        "File size exceeds maximum allowed size of 10MB",
        "Invalid file type. Only JPEG, PNG, WebP, and GIF images are allowed.",
        "Invalid file extension. Only .jpg, .jpeg, .png, .webp, .gif files are allowed.",
    ]


@pytest.mark.parametrize(
    "filename",
    ["virus.exe.jpg", "../../etc/passwd.jpg", ".hidden.png", "con.jpg", "photo<1>.jpg", "script.js.png"],
)
def test_malicious_filenames_are_rejected(filename):
    assert contains_malicious_patterns(filename) is True
    assert "Filename contains invalid characters or patterns." in validate_media_file(1024, "image/jpeg", filename)["errors"]


def test_plain_filenames_are_not_flagged():
    assert contains_malicious_patterns("storefront-2024_summer.jpeg") is False


def test_service_requires_bucket(monkeypatch):
    monkeypatch.setattr(media_service, "S3_BUCKET_NAME", "")

    with pytest.raises(RuntimeError, match="S3_BUCKET_NAME"):
        MediaService(client=FakeS3Client())


def test_generate_signed_upload_url_targets_temp_prefix():
    client = FakeS3Client()
    service = _service(client)

    signed = service.generate_signed_upload_url(BUSINESS_ID, "Storefront.JPG", "image/jpeg", "photo")

    assert signed["key"] == f"temp-uploads/{BUSINESS_ID}/{signed['mediaId']}.jpg"
    assert signed["uploadUrl"] == f"https://signed.example/{signed['key']}"
    assert signed["expiresAt"]
    params = client.presigned[0]["params"]
    assert client.presigned[0]["operation"] == "put_object"
    assert params["ContentType"] == "image/jpeg"
    assert params["Metadata"]["type"] == "photo"


def test_generate_signed_upload_url_rejects_unsupported_type():
    with pytest.raises(AppError) as exc:
        _service().generate_signed_upload_url(BUSINESS_ID, "doc.pdf", "application/pdf", "photo")

    assert exc.value.status_code == 400


def test_render_variants_for_photo_respects_bounds():
    original, rendered = render_variants(_png_bytes(), "photo")

    assert set(rendered) == {"thumbnail", "small", "medium", "large"}
    sizes = {name: Image.open(io.BytesIO(data)).size for name, data in rendered.items()}
    assert sizes["thumbnail"] == (150, 150)
    assert sizes["small"] == (300, 150)
    assert sizes["medium"] == (800, 400)
    # não amplia imagens menores que o limite
    assert sizes["large"] == (1200, 600)
    assert Image.open(io.BytesIO(original)).format == "JPEG"


def test_render_variants_for_logo_pads_to_square():
    _, rendered = render_variants(_png_bytes(size=(400, 100)), "logo")

    assert "large" not in rendered
    logo = Image.open(io.BytesIO(rendered["logo"]))
    assert logo.size == (512, 512)
    assert logo.mode == "RGB"


def test_process_uploaded_media_stores_variants_and_removes_temp_object():
    client = FakeS3Client()
    temp = f"temp-uploads/{BUSINESS_ID}/{MEDIA_ID}.png"
    client.objects[temp] = {"Body": _png_bytes(), "ContentType": "image/png"}
    service = _service(client)

    item = service.process_uploaded_media(BUSINESS_ID, MEDIA_ID, "photo", "Patio seating")

    assert item["id"] == MEDIA_ID
    assert item["type"] == "photo"
    assert item["description"] == "Patio seating"
    assert item["mimetype"] == "image/png"
    assert item["largeUrl"].endswith(variant_key(BUSINESS_ID, MEDIA_ID, "photo", "large"))
    assert "logoUrl" not in item
    assert f"business-media/{BUSINESS_ID}/{MEDIA_ID}.jpg" in client.objects
    assert f"business-photos/{BUSINESS_ID}/{MEDIA_ID}_thumbnail.jpg" in client.objects
    assert temp not in client.objects


def test_process_uploaded_media_returns_404_when_upload_missing():
    with pytest.raises(AppError) as exc:
        _service().process_uploaded_media(BUSINESS_ID, MEDIA_ID, "photo")

    assert exc.value.status_code == 404
    assert exc.value.message == "Uploaded media not found"


def test_process_uploaded_media_cleans_up_when_image_is_corrupt():
    client = FakeS3Client()
    temp = f"temp-uploads/{BUSINESS_ID}/{MEDIA_ID}.jpg"
    client.objects[temp] = {"Body": b"not an image", "ContentType": "image/jpeg"}

    with pytest.raises(AppError) as exc:
        _service(client).process_uploaded_media(BUSINESS_ID, MEDIA_ID, "logo")

    assert exc.value.status_code == 500
    assert exc.value.message.startswith("Failed to process uploaded media")
    assert temp in client.deleted
    assert f"business-logos/{BUSINESS_ID}/{MEDIA_ID}_logo.jpg" in client.deleted


def test_process_uploaded_media_cleans_up_when_storage_fails():
    client = FakeS3Client()
    temp = f"temp-uploads/{BUSINESS_ID}/{MEDIA_ID}.png"
    client.objects[temp] = {"Body": _png_bytes(), "ContentType": "image/png"}
    client.fail_puts = True

    with pytest.raises(AppError) as exc:
        _service(client).process_uploaded_media(BUSINESS_ID, MEDIA_ID, "photo")

    assert exc.value.status_code == 500
    assert temp not in client.objects


def test_process_uploaded_media_cleans_up_when_image_decodes_too_large(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    client = FakeS3Client()
    temp = f"temp-uploads/{BUSINESS_ID}/{MEDIA_ID}.png"
    client.objects[temp] = {"Body": _png_bytes(size=(200, 200), mode="RGB"), "ContentType": "image/png"}

    with pytest.raises(AppError) as exc:
        _service(client).process_uploaded_media(BUSINESS_ID, MEDIA_ID, "photo")

    assert exc.value.status_code == 500
    assert exc.value.message.startswith("Failed to process uploaded media")
    assert temp not in client.objects
    assert f"business-photos/{BUSINESS_ID}/{MEDIA_ID}_large.jpg" in client.deleted


def test_process_uploaded_media_checks_size_before_reading_body(monkeypatch):
    monkeypatch.setattr(media_service, "MEDIA_MAX_FILE_SIZE_MB", 1)
    client = FakeS3Client()
    temp = f"temp-uploads/{BUSINESS_ID}/{MEDIA_ID}.jpg"
    client.objects[temp] = {"Body": b"", "ContentType": "image/jpeg", "ContentLength": 5 * 1024 * 1024}

    with pytest.raises(AppError) as exc:
        _service(client).process_uploaded_media(BUSINESS_ID, MEDIA_ID, "photo")

    assert exc.value.status_code == 400
    assert exc.value.message == "File size exceeds maximum allowed size of 1MB"
    assert client.bodies[0].reads == 0
    assert temp not in client.objects


def test_process_uploaded_media_ignores_uploads_sharing_an_id_prefix():
    client = FakeS3Client()
    temp = f"temp-uploads/{BUSINESS_ID}/{MEDIA_ID}.png"
    client.objects[temp] = {"Body": _png_bytes(), "ContentType": "image/png"}
    service = _service(client)

    with pytest.raises(AppError) as exc:
        service.process_uploaded_media(BUSINESS_ID, MEDIA_ID[:1], "photo")

    assert exc.value.status_code == 404
    assert temp in client.objects
    assert service.process_uploaded_media(BUSINESS_ID, MEDIA_ID, "photo")["id"] == MEDIA_ID


def test_process_uploaded_media_ignores_disallowed_extensions():
    client = FakeS3Client()
    client.objects[f"temp-uploads/{BUSINESS_ID}/{MEDIA_ID}.svg"] = {"Body": b"<svg/>", "ContentType": "image/svg+xml"}

    with pytest.raises(AppError) as exc:
        _service(client).process_uploaded_media(BUSINESS_ID, MEDIA_ID, "photo")

    assert exc.value.status_code == 404


def test_public_url_uses_configured_base(monkeypatch):
    monkeypatch.setattr(media_service, "S3_PUBLIC_BASE_URL", "https://cdn.buylocals.test")

    assert _service().public_url("business-media/a.jpg") == "https://cdn.buylocals.test/business-media/a.jpg"


def test_delete_media_file_removes_original_and_variants():
    client = FakeS3Client()

    _service(client).delete_media_file(BUSINESS_ID, MEDIA_ID, "photo")

    assert client.deleted == [
        f"business-media/{BUSINESS_ID}/{MEDIA_ID}.jpg",
        f"business-photos/{BUSINESS_ID}/{MEDIA_ID}_thumbnail.jpg",
        f"business-photos/{BUSINESS_ID}/{MEDIA_ID}_small.jpg",
        f"business-photos/{BUSINESS_ID}/{MEDIA_ID}_medium.jpg",
        f"business-photos/{BUSINESS_ID}/{MEDIA_ID}_large.jpg",
    ]
