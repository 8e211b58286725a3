"""Tests for object storage and the image host client."""

import httpx
import pytest

from healthnet.config import settings
from healthnet.core.exceptions import (
    BadRequestException,
    NotFoundException,
    PayloadTooLargeException,
    UpstreamServiceException,
)
from healthnet.services.image_host import ImageHostClient
from healthnet.services.storage_service import StorageService


def test_upload_open_and_delete(storage: StorageService):
    storage.upload("resumes/a/cv.pdf", b"%PDF-1.4")

    assert storage.open_path("resumes/a/cv.pdf").read_bytes() == b"%PDF-1.4"
    assert storage.delete("resumes/a/cv.pdf") is True
    assert storage.delete("resumes/a/cv.pdf") is False
    with pytest.raises(NotFoundException):
        storage.open_path("resumes/a/cv.pdf")


def test_upload_without_overwrite_rejects_existing(storage: StorageService):
    storage.upload("resumes/cv.pdf", b"one")

    with pytest.raises(BadRequestException):
        storage.upload("resumes/cv.pdf", b"two", overwrite=False)


@pytest.mark.parametrize("path", ["../outside.pdf", "/etc/passwd", "resumes/../../x", ""])
def test_paths_cannot_escape_root(storage: StorageService, path: str):
    with pytest.raises(BadRequestException):
        storage.upload(path, b"data")


def test_signed_url_resolves_to_object(storage: StorageService):
    storage.upload("resumes/cv.pdf", b"%PDF")

    url = storage.create_signed_url("resumes/cv.pdf", ttl_seconds=60)
    token = url.rsplit("/", 1)[-1]

    assert "/api/v1/storage/" in url
    assert storage.resolve_signed_token(token).read_bytes() == b"%PDF"


def test_expired_or_forged_token_is_rejected(storage: StorageService):
    storage.upload("resumes/cv.pdf", b"%PDF")
    expired = storage.create_signed_url("resumes/cv.pdf", ttl_seconds=-10).rsplit("/", 1)[-1]

    with pytest.raises(NotFoundException):
        storage.resolve_signed_token(expired)
    with pytest.raises(NotFoundException):
        storage.resolve_signed_token("not-a-token")


def test_signed_url_requires_existing_object(storage: StorageService):
    with pytest.raises(NotFoundException):
        storage.create_signed_url("resumes/missing.pdf", ttl_seconds=60)


async def test_image_upload_returns_hosted_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(200, json={"secure_url": "https://img.example/photo.png"})

    client = ImageHostClient(
        upload_url="https://upload.example/image",
        upload_preset="profiles",
        transport=httpx.MockTransport(handler),
    )

    url = await client.upload(b"\x89PNG", "photo.png", "image/png")

    assert url == "https://img.example/photo.png"
    assert seen["url"] == "https://upload.example/image"
    assert b"profiles" in seen["body"]


async def test_image_upload_rejects_non_images_without_calling_host():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("host should not be called")

    client = ImageHostClient(transport=httpx.MockTransport(handler))

    with pytest.raises(BadRequestException):
        await client.upload(b"%PDF", "cv.pdf", "application/pdf")


def test_image_validation_rejects_oversized_files(monkeypatch):
    monkeypatch.setattr(settings, "image_max_bytes", 4)

    with pytest.raises(PayloadTooLargeException):
        ImageHostClient.validate(b"12345", "image/jpeg")


async def test_image_host_error_becomes_upstream_failure():
    client = ImageHostClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
    )

    with pytest.raises(UpstreamServiceException):
        await client.upload(b"\xff\xd8", "photo.jpg", "image/jpeg")


async def test_image_host_response_without_url_is_an_error():
    client = ImageHostClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"public_id": "x"}))
    )

    with pytest.raises(UpstreamServiceException):
        await client.upload(b"\xff\xd8", "photo.jpg", "image/jpeg")
