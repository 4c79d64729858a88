"""Encoded still images handed from a capture surface to the analyzer."""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path

from werkzeug.datastructures import FileStorage

DEFAULT_MIME_TYPE = "image/jpeg"
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024

_DATA_URL = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]*)*)(?P<b64>;base64)?,(?P<payload>.*)$",
    re.DOTALL,
)
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class ImageFrame:
    """One captured image: raw encoded bytes plus their MIME type."""

    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_data_url(
        cls, value: str, *, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    ) -> "ImageFrame":
        """Decode ``data:<mime>;base64,<payload>`` (or bare base64) into a frame."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError("imageData is required")

        candidate = value.strip()
        mime_type = DEFAULT_MIME_TYPE
        if candidate.startswith("data:"):
            match = _DATA_URL.match(candidate)
            if match is None:
                raise ValueError("imageData is not a valid data URL")
            if not match.group("b64"):
                raise ValueError("imageData must be base64 encoded")
            mime_type = (match.group("mime") or DEFAULT_MIME_TYPE).lower()
            candidate = match.group("payload")

        try:
            data = base64.b64decode(_WHITESPACE.sub("", candidate), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("imageData payload is not valid base64") from exc

        return _checked_frame(data, mime_type, max_bytes=max_bytes)


def frame_from_upload(
    image_file: FileStorage, *, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES
) -> ImageFrame:
    """Build a frame from a multipart upload."""

    if image_file.filename == "":
        raise ValueError("empty filename")

    image_bytes = image_file.read()
    mime_type = image_file.mimetype
    if not mime_type or mime_type == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(image_file.filename or "")
        mime_type = guessed or DEFAULT_MIME_TYPE

    return _checked_frame(image_bytes, mime_type, max_bytes=max_bytes)


def load_image_file(
    path: str | Path, *, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES
) -> ImageFrame:
    """Read an image from disk, guessing the MIME type from its name."""

    image_path = Path(path)
    if not image_path.is_file():
        raise ValueError(f"image '{image_path}' not found")

    mime_type, _ = mimetypes.guess_type(image_path.name)
    with image_path.open("rb") as fp:
        image_bytes = fp.read()

    return _checked_frame(
        image_bytes, mime_type or DEFAULT_MIME_TYPE, max_bytes=max_bytes
    )


def _checked_frame(data: bytes, mime_type: str, *, max_bytes: int) -> ImageFrame:
    if not data:
        raise ValueError("uploaded image was empty")
    if not mime_type.startswith("image/"):
        raise ValueError(f"unsupported content type '{mime_type}'")
    if max_bytes and len(data) > max_bytes:
        raise ValueError(f"image exceeds the {max_bytes} byte limit")
    return ImageFrame(data=data, mime_type=mime_type)
