"""
Photo selection for profile and family member forms
"""
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


@dataclass
class PickedImage:
    uri: str
    base64: Optional[str] = None


class ImagePicker(Protocol):
    """Device camera / photo library; returns None when the user cancels"""

    async def pick_from_library(self, aspect: Tuple[int, int], quality: float) -> Optional[PickedImage]:
        ...

    async def take_photo(self, aspect: Tuple[int, int], quality: float) -> Optional[PickedImage]:
        ...


class PhotoCapture:
    """
    Holds the currently chosen photo as a local URI plus base64 payload.

    Picker failures are reported through ``on_error`` and leave the previous
    photo in place.
    """

    def __init__(
        self,
        picker: ImagePicker,
        aspect: Tuple[int, int] = (1, 1),
        quality: float = 0.8,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.picker = picker
        self.aspect = aspect
        self.quality = quality
        self.on_error = on_error
        self.uri: Optional[str] = None
        self.base64: Optional[str] = None

    @property
    def has_photo(self) -> bool:
        return self.uri is not None

    async def _capture(self, source: str) -> bool:
        try:
            if source == "camera":
                image = await self.picker.take_photo(self.aspect, self.quality)
            else:
                image = await self.picker.pick_from_library(self.aspect, self.quality)
        except Exception as e:
            logger.error(f"Error selecting photo from {source}: {e}")
            if self.on_error:
                self.on_error(f"Failed to {'take' if source == 'camera' else 'select'} photo")
            return False

        if image is None:
            return False
        self.set_photo(image.uri, image.base64)
        return True

    async def pick_image(self) -> bool:
        return await self._capture("library")

    async def take_photo(self) -> bool:
        return await self._capture("camera")

    def set_photo(self, uri: Optional[str], base64_payload: Optional[str] = None) -> None:
        self.uri = uri
        self.base64 = base64_payload

    def clear(self) -> None:
        self.set_photo(None, None)

    def to_bytes(self) -> Optional[bytes]:
        """Decoded payload for upload, or None when there is nothing valid"""
        if not self.base64:
            return None
        try:
            return base64.b64decode(self.base64, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Photo payload is not valid base64")
            return None
