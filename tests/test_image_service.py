from __future__ import annotations

import asyncio
import io
import sys
import threading
from pathlib import Path

import pytest
from PIL import Image

# Keep the sanaee package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sanaee.services import image_service  # noqa: E402
from sanaee.services.image_service import (  # noqa: E402
    CorruptImageError,
    ImageTooLargeError,
    InMemoryImageFile,
    NotAnImageError,
    UnreadableFileError,
    compress,
    decode_data_url,
    is_safe_embed_source,
    scaled_dimensions,
)

MIB = 1024 * 1024


def _image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height), (200, 120, 40) if mode == "RGB" else (200, 120, 40, 128)).save(buffer, format=fmt)
    return buffer.getvalue()


def _decoded_size(data_url: str) -> tuple[int, int]:
    mime, payload = decode_data_url(data_url)
    assert mime == "image/jpeg"
    with Image.open(io.BytesIO(payload)) as img:
        assert img.format == "JPEG"
        return img.size


class _FakeUpload:
    def __init__(self, content_type: str, size: int | None, data: bytes = b"", error: Exception | None = None):
        self.content_type = content_type
        self.size = size
        self._data = data
        self._error = error
        self.reads = 0

    async def read(self) -> bytes:
        self.reads += 1
        if self._error:
            raise self._error
        return self._data


@pytest.fixture()
def no_decode(monkeypatch):
    """Fails the test if the decoder is ever reached."""
    def _boom(data):
        raise AssertionError("decode must not run")

    monkeypatch.setattr(image_service, "_decode", _boom)


def test_non_image_type_rejected_without_decoding(no_decode):
    upload = _FakeUpload("application/pdf", 100, b"%PDF-1.4")
    with pytest.raises(NotAnImageError):
        asyncio.run(compress(upload))
    assert upload.reads == 0


def test_missing_content_type_is_not_an_image(no_decode):
    with pytest.raises(NotAnImageError):
        asyncio.run(compress(_FakeUpload(None, 10, b"abc")))  # type: ignore[arg-type]


def test_three_mib_rejected_before_read_or_decode(no_decode):
    upload = _FakeUpload("image/png", 3 * MIB, error=AssertionError("read must not run"))
    with pytest.raises(ImageTooLargeError) as excinfo:
        asyncio.run(compress(upload))
    assert excinfo.value.size == 3 * MIB
    assert upload.reads == 0


def test_type_checked_before_size(no_decode):
    with pytest.raises(NotAnImageError):
        asyncio.run(compress(_FakeUpload("text/plain", 3 * MIB)))


def test_undeclared_size_checked_after_read(no_decode):
    upload = _FakeUpload("image/jpeg", None, b"\0" * (2 * MIB + 1))
    with pytest.raises(ImageTooLargeError):
        asyncio.run(compress(upload))


def test_read_failure_is_unreadable():
    with pytest.raises(UnreadableFileError):
        asyncio.run(compress(_FakeUpload("image/png", 10, error=OSError("disk gone"))))
    with pytest.raises(UnreadableFileError):
        asyncio.run(compress(_FakeUpload("image/png", 0, b"")))


def test_garbage_bytes_are_corrupt():
    upload = InMemoryImageFile("image/jpeg", b"\xff\xd8\xff" + b"not really a jpeg" * 10)
    with pytest.raises(CorruptImageError):
        asyncio.run(compress(upload))


def test_errors_are_distinct_and_carry_messages():
    errors = [NotAnImageError(), ImageTooLargeError(3 * MIB), UnreadableFileError(), CorruptImageError()]
    assert len({type(e) for e in errors}) == 4
    assert all(str(e) for e in errors)
    assert "3.0" in str(errors[1])


def test_wide_image_scaled_to_400_keeping_aspect_ratio():
    result = asyncio.run(compress(InMemoryImageFile("image/png", _image_bytes(1000, 500))))
    assert result.startswith("data:image/jpeg;base64,")
    assert _decoded_size(result) == (400, 200)


def test_decode_and_encode_run_off_the_event_loop_thread(monkeypatch):
    seen = []
    real_decode = image_service._decode

    def _recording_decode(data):
        seen.append(threading.get_ident())
        return real_decode(data)

    monkeypatch.setattr(image_service, "_decode", _recording_decode)
    result = asyncio.run(compress(InMemoryImageFile("image/png", _image_bytes(30, 30))))
    assert _decoded_size(result) == (30, 30)
    assert seen and seen[0] != threading.get_ident()


def test_tall_image_scaled_on_height():
    result = asyncio.run(compress(InMemoryImageFile("image/png", _image_bytes(300, 900))))
    assert _decoded_size(result) == (133, 400)


def test_small_image_never_upscaled():
    result = asyncio.run(compress(InMemoryImageFile("image/png", _image_bytes(120, 80))))
    assert _decoded_size(result) == (120, 80)


def test_transparent_png_is_flattened_to_jpeg():
    result = asyncio.run(compress(InMemoryImageFile("image/png", _image_bytes(50, 50, mode="RGBA"))))
    assert _decoded_size(result) == (50, 50)


@pytest.mark.parametrize(
    "size, expected",
    [((1000, 500), (400, 200)), ((1000, 333), (400, 133)), ((401, 401), (400, 400)), ((400, 10), (400, 10)), ((5000, 1), (400, 1))],
)
def test_scaled_dimensions(size, expected):
    assert scaled_dimensions(*size) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("data:image/jpeg;base64,/9j/4AAQ", True),
        ("data:image/png;base64,iVBOR", True),
        ("javascript:alert(1)", False),
        ("", False),
        (None, False),
        ("DATA:image/jpeg;base64,AA", False),
        (" data:image/jpeg;base64,AA", False),
        ("data:text/html;base64,PHNjcmlwdD4=", False),
        (42, False),
    ],
)
def test_is_safe_embed_source(value, expected):
    assert is_safe_embed_source(value) is expected


def test_decode_data_url_rejects_unsafe_values():
    with pytest.raises(ValueError):
        decode_data_url("javascript:alert(1)")
    with pytest.raises(ValueError):
        decode_data_url("data:image/jpeg,notbase64")
