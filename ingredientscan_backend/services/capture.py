"""Desktop capture surface backed by an OpenCV camera stream."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

import cv2

from ingredientscan_backend.services.images import ImageFrame

logger = logging.getLogger(__name__)

Facing = Literal["user", "environment"]

DEFAULT_JPEG_QUALITY = 90


@dataclass(slots=True)
class CaptureSettings:
    """Which camera to open and how to encode snapshots."""

    facing: Facing = "environment"
    environment_device: int = 0
    user_device: int = 1
    jpeg_quality: int = DEFAULT_JPEG_QUALITY

    def device_for(self, facing: Facing) -> int:
        return self.user_device if facing == "user" else self.environment_device


class CameraCapture:
    """Acquire a camera stream and snapshot single frames from it.

    The stream is released after a capture, when switching sensors, and on
    context-manager exit. Failures are logged; callers decide whether to try
    again.
    """

    def __init__(self, settings: CaptureSettings | None = None) -> None:
        self._settings = settings or CaptureSettings()
        self._facing: Facing = self._settings.facing
        self._stream: cv2.VideoCapture | None = None

    @property
    def facing(self) -> Facing:
        return self._facing

    @property
    def is_active(self) -> bool:
        return self._stream is not None

    def start(self) -> bool:
        """Open the stream for the current facing; ``False`` when unavailable."""

        if self._stream is not None:
            return True

        device = self._settings.device_for(self._facing)
        try:
            stream = cv2.VideoCapture(device)
        except cv2.error:
            logger.exception(
                "error accessing camera", extra={"device": device}
            )
            return False

        if not stream.isOpened():
            stream.release()
            logger.error(
                "error accessing camera: device %s could not be opened", device
            )
            return False

        self._stream = stream
        logger.info(
            "camera started", extra={"device": device, "facing": self._facing}
        )
        return True

    def switch_facing(self) -> Facing:
        """Release the stream and flip between front and back sensors."""

        self.release()
        self._facing = "user" if self._facing == "environment" else "environment"
        return self._facing

    def read_preview(self):
        """Return the latest raw frame for display, or ``None``."""

        if self._stream is None:
            return None
        ok, frame = self._stream.read()
        return frame if ok else None

    def capture(self) -> ImageFrame | None:
        """Snapshot one frame as JPEG and release the stream."""

        if self._stream is None:
            logger.error("capture requested without an active camera stream")
            return None

        try:
            ok, frame = self._stream.read()
            if not ok or frame is None:
                logger.error("camera returned no frame")
                return None

            encoded_ok, buffer = cv2.imencode(
                ".jpg",
                frame,
                [int(cv2.IMWRITE_JPEG_QUALITY), self._settings.jpeg_quality],
            )
            if not encoded_ok:
                logger.error("failed to encode captured frame as JPEG")
                return None
            return ImageFrame(data=buffer.tobytes(), mime_type="image/jpeg")
        finally:
            self.release()

    def release(self) -> None:
        if self._stream is not None:
            self._stream.release()
            self._stream = None
            logger.debug("camera released")

    def __enter__(self) -> "CameraCapture":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
