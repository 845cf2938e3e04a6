"""
Camera capability used by the capture flow
"""
import base64
import binascii
from typing import Optional, Protocol

from geoattend.core.errors import CameraUnavailable

FRONT_CAMERA = "user"
JPEG_MAGIC = b"\xff\xd8"


class MediaStream(Protocol):
    def stop(self) -> None:
        """Stop every track of the stream"""
        ...


class CameraCapability(Protocol):
    async def acquire_stream(self, facing: str) -> MediaStream:
        """Raises CameraUnavailable when no camera can be opened"""
        ...

    async def capture_frame(self, stream: MediaStream) -> bytes:
        """One JPEG still frame from an open stream"""
        ...


class UploadedStream:
    """Stream over a single still image the client already captured"""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.active = True

    def stop(self) -> None:
        self.active = False


def decode_photo(photo_base64: str) -> bytes:
    """Accepts raw base64 or a data URL"""
    encoded = photo_base64.strip()
    if encoded.startswith("data:"):
        _, _, encoded = encoded.partition(",")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise CameraUnavailable("Photo is not valid base64")


class UploadedPhotoCamera:
    """
    Camera capability for the HTTP flow

    The browser opens the front camera and uploads the selfie; this adapter
    replays that frame through the same acquire/capture/stop protocol.
    """

    def __init__(self, photo_base64: Optional[str], max_bytes: int) -> None:
        self.photo_base64 = photo_base64
        self.max_bytes = max_bytes

    async def acquire_stream(self, facing: str = FRONT_CAMERA) -> UploadedStream:
        if not self.photo_base64:
            raise CameraUnavailable("No verification photo was provided")

        data = decode_photo(self.photo_base64)
        if not data:
            raise CameraUnavailable("Verification photo is empty")
        if len(data) > self.max_bytes:
            raise CameraUnavailable(f"Verification photo exceeds {self.max_bytes} bytes")
        if not data.startswith(JPEG_MAGIC):
            raise CameraUnavailable("Verification photo must be a JPEG image")

        return UploadedStream(data)

    async def capture_frame(self, stream: UploadedStream) -> bytes:
        if not stream.active:
            raise CameraUnavailable("Camera stream is already stopped")
        return stream.data
