"""
Unit tests for ImageService.

Tests upload type validation, downscaling, and data URI encoding.
"""
import base64
from io import BytesIO

import pytest
from fastapi import UploadFile
from PIL import Image
from starlette.datastructures import Headers

from safecheck.services.image_service import (
    ImageService,
    is_remote_url,
    parse_data_uri,
)


def make_image_bytes(size=(100, 100), fmt="PNG", mode="RGB") -> bytes:
    buffer = BytesIO()
    Image.new(mode, size, color="red" if mode == "RGB" else None).save(buffer, format=fmt)
    return buffer.getvalue()


def create_upload_file(content: bytes, content_type: str, filename: str) -> UploadFile:
    return UploadFile(
        file=BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def decoded_size(data_uri: str) -> tuple[int, int]:
    _media_type, data = parse_data_uri(data_uri)
    with Image.open(BytesIO(base64.b64decode(data))) as img:
        return img.size


class TestPrepareBytes:
    def test_large_landscape_downscaled(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path), max_dimension=800)

        prepared = service.prepare_bytes(make_image_bytes((1600, 1200)))

        assert decoded_size(prepared.data_uri) == (800, 600)

    def test_large_portrait_downscaled(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path), max_dimension=800)

        prepared = service.prepare_bytes(make_image_bytes((1000, 2000)))

        assert decoded_size(prepared.data_uri) == (400, 800)

    def test_large_square_downscaled(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path), max_dimension=800)

        prepared = service.prepare_bytes(make_image_bytes((1200, 1200)))

        assert decoded_size(prepared.data_uri) == (800, 800)

    def test_small_image_untouched(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path), max_dimension=800)

        prepared = service.prepare_bytes(make_image_bytes((320, 240)))

        assert decoded_size(prepared.data_uri) == (320, 240)

    def test_rgba_converted_to_jpeg(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path))

        prepared = service.prepare_bytes(make_image_bytes(mode="RGBA"))

        assert prepared.data_uri.startswith("data:image/jpeg;base64,")

    def test_file_written_to_upload_dir(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path))

        prepared = service.prepare_bytes(make_image_bytes())

        assert prepared.path.startswith(str(tmp_path))
        with Image.open(prepared.path) as img:
            assert img.format == "JPEG"

    def test_garbage_bytes_rejected(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path))

        with pytest.raises(ValueError, match="Failed to process image"):
            service.prepare_bytes(b"not an image")


class TestPrepareUpload:
    @pytest.mark.asyncio
    async def test_accepts_png(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path))
        upload = create_upload_file(make_image_bytes(), "image/png", "label.png")

        prepared = await service.prepare_upload(upload)

        assert prepared.data_uri.startswith("data:image/jpeg;base64,")

    @pytest.mark.asyncio
    async def test_rejects_pdf(self, tmp_path):
        service = ImageService(upload_dir=str(tmp_path))
        upload = create_upload_file(b"%PDF-1.4", "application/pdf", "label.pdf")

        with pytest.raises(ValueError, match="Invalid file type"):
            await service.prepare_upload(upload)


class TestReferences:
    def test_remote_urls(self):
        assert is_remote_url("https://example.com/a.jpg")
        assert is_remote_url("http://example.com/a.jpg")
        assert not is_remote_url("data:image/png;base64,AAAA")
        assert not is_remote_url("/tmp/a.jpg")

    def test_parse_data_uri(self):
        assert parse_data_uri("data:image/png;base64,AAAA") == ("image/png", "AAAA")

    def test_parse_data_uri_rejects_plain_path(self):
        with pytest.raises(ValueError):
            parse_data_uri("/tmp/a.jpg")
