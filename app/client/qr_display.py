"""
Member-side QR display: home screen panel and the expanded full-brightness view
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from app.utils.qr import render_qr_png

logger = logging.getLogger(__name__)

QR_NOT_AVAILABLE = "QR Code Not Available"
MAX_BRIGHTNESS = 1.0


@dataclass
class QRPanel:
    """What the home screen shows in the QR card"""
    available: bool
    png: Optional[bytes] = None
    placeholder: Optional[str] = None
    member_name: Optional[str] = None

    @property
    def can_expand(self) -> bool:
        return self.available


def build_qr_panel(member: Dict[str, Any]) -> QRPanel:
    """
    Render the member's token, or a "not available" placeholder when the
    member has none. Never renders an empty code.
    """
    name = f"{member.get('first_name', '')} {member.get('last_name', '')}".strip() or None
    token = member.get("qr_token")
    if not token:
        return QRPanel(available=False, placeholder=QR_NOT_AVAILABLE, member_name=name)
    return QRPanel(available=True, png=render_qr_png(token), member_name=name)


class Brightness(Protocol):
    async def get_brightness(self) -> float:
        ...

    async def set_brightness(self, value: float) -> None:
        ...


class ExpandedQRView:
    """
    Full-screen QR code at maximum brightness.

    The previous brightness is restored on every way out: ``close()``, the app
    going to the background, and the view being torn down. Brightness API
    failures are skipped.

    Usage:
        async with ExpandedQRView(brightness, panel):
            ...
    """

    def __init__(self, brightness: Brightness, panel: QRPanel):
        self.brightness = brightness
        self.panel = panel
        self.is_open = False
        self._original: Optional[float] = None

    async def open(self) -> None:
        if self.is_open:
            return
        self.is_open = True
        try:
            self._original = await self.brightness.get_brightness()
            await self.brightness.set_brightness(MAX_BRIGHTNESS)
        except Exception as e:
            logger.debug(f"Brightness control not available: {e}")

    async def _restore(self) -> None:
        if self._original is None:
            return
        original, self._original = self._original, None
        try:
            await self.brightness.set_brightness(original)
        except Exception as e:
            logger.debug(f"Could not restore brightness: {e}")

    async def close(self) -> None:
        self.is_open = False
        await self._restore()

    async def on_app_background(self) -> None:
        await self.close()

    async def unmount(self) -> None:
        await self.close()

    async def __aenter__(self) -> "ExpandedQRView":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()
