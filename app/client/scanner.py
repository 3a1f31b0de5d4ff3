"""
Camera scanning for front-desk check-in.

``CameraSession`` serializes start/stop of the camera hardware; ``ScanSession``
turns a stream of decoded frames into a single lookup.
"""
import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

CAMERA_UNAVAILABLE_ERROR = "Could not access camera. Please ensure camera permissions are granted."

DecodeCallback = Callable[[str], None]


class CameraState(str, enum.Enum):
    IDLE = "idle"
    STARTING = "starting"
    SCANNING = "scanning"
    STOPPING = "stopping"
    ERROR = "error"


class Camera(Protocol):
    """Camera hardware that reports every decoded QR payload to a callback"""

    async def start(self, on_decode: DecodeCallback) -> None:
        ...

    async def stop(self) -> None:
        ...


class CameraSession:
    """
    Lifecycle ``idle -> starting -> scanning -> stopping -> idle``, with
    ``error`` when the camera cannot be opened.

    One lock guards both transitions, so a start never overlaps a stop that is
    still tearing the camera down.
    """

    def __init__(self, camera: Camera, on_decode: DecodeCallback):
        self.camera = camera
        self.on_decode = on_decode
        self.state = CameraState.IDLE
        self.error: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def is_scanning(self) -> bool:
        return self.state == CameraState.SCANNING

    def _handle_decode(self, text: str) -> None:
        # Frames that arrive while starting or stopping are dropped
        if self.state == CameraState.SCANNING:
            self.on_decode(text)

    async def start(self) -> bool:
        async with self._lock:
            if self.state == CameraState.SCANNING:
                return True

            self.state = CameraState.STARTING
            self.error = None
            try:
                await self.camera.start(self._handle_decode)
            except Exception as e:
                logger.error(f"Scanner error: {e}")
                self.state = CameraState.ERROR
                self.error = CAMERA_UNAVAILABLE_ERROR
                return False

            self.state = CameraState.SCANNING
            return True

    def request_stop(self) -> None:
        """Stop accepting frames now; the hardware is released by ``stop()``"""
        if self.state == CameraState.SCANNING:
            self.state = CameraState.STOPPING

    async def stop(self) -> None:
        async with self._lock:
            if self.state == CameraState.ERROR:
                self.state = CameraState.IDLE
                return
            if self.state not in (CameraState.SCANNING, CameraState.STOPPING):
                return

            self.state = CameraState.STOPPING
            try:
                await self.camera.stop()
            except Exception as e:
                logger.error(f"Error stopping scanner: {e}")
            finally:
                self.state = CameraState.IDLE


class ScanSession:
    """
    One scan: the first decoded payload stops the camera, then is dispatched.

    Further decodes in the same session are ignored. Scanning resumes only on
    an explicit ``start()``.
    """

    def __init__(self, camera: Camera, dispatch: Callable[[str], Awaitable[Any]]):
        self.dispatch = dispatch
        self.camera_session = CameraSession(camera, self._on_decode)
        self.scanned_value: Optional[str] = None
        self._dispatch_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> CameraState:
        return self.camera_session.state

    @property
    def error(self) -> Optional[str]:
        return self.camera_session.error

    async def start(self) -> bool:
        """
        Begin a new scan.

        A previous scan that is still stopping the camera or running its lookup
        is finished first, so the camera is never reopened mid-teardown.
        """
        pending = self._dispatch_task
        if pending is not None and not pending.done():
            await asyncio.gather(pending, return_exceptions=True)

        self.scanned_value = None
        self._dispatch_task = None
        return await self.camera_session.start()

    def _on_decode(self, text: str) -> None:
        if self.scanned_value is not None:
            return
        self.scanned_value = text
        self.camera_session.request_stop()
        self._dispatch_task = asyncio.ensure_future(self._stop_then_dispatch(text))

    async def _stop_then_dispatch(self, text: str) -> Any:
        await self.camera_session.stop()
        return await self.dispatch(text)

    async def wait_for_dispatch(self) -> Any:
        """Result of the dispatched lookup, or None when nothing was scanned"""
        if self._dispatch_task is None:
            return None
        return await self._dispatch_task

    async def close(self) -> None:
        """Release the camera, e.g. when the screen is left"""
        await self.camera_session.stop()
