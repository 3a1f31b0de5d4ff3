"""
Push notification routing, Android channels and local preferences
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from app.client.api import RemoteDataService
from app.client.errors import RemoteServiceError
from app.client.storage import KeyValueStore

logger = logging.getLogger(__name__)

NOTIFICATION_PROMPT_KEY = "@Sanctum:notificationPromptShown"
NOTIFICATIONS_ENABLED_KEY = "@Sanctum:notificationsEnabled"


class AppRoute(str, enum.Enum):
    HOME = "home"
    NEWS = "news"


class ChannelImportance(str, enum.Enum):
    MAX = "max"
    HIGH = "high"
    DEFAULT = "default"


@dataclass(frozen=True)
class NotificationChannel:
    id: str
    name: str
    importance: ChannelImportance
    light_color: str
    description: Optional[str] = None
    vibration_pattern: List[int] = field(default_factory=list)


ANDROID_CHANNELS = (
    NotificationChannel(
        id="default",
        name="Default",
        importance=ChannelImportance.MAX,
        light_color="#4A2040",
        vibration_pattern=[0, 250, 250, 250],
    ),
    NotificationChannel(
        id="announcements",
        name="Announcements",
        description="Organization announcements and news",
        importance=ChannelImportance.HIGH,
        light_color="#4A2040",
        vibration_pattern=[0, 250, 250, 250],
    ),
    NotificationChannel(
        id="check_ins",
        name="Check-ins",
        description="Check-in confirmations",
        importance=ChannelImportance.DEFAULT,
        light_color="#4A7C59",
    ),
)

ROUTES_BY_TYPE = {
    "announcement": AppRoute.NEWS,
    "check_in": AppRoute.HOME,
}


def route_for_notification(data: Optional[Mapping[str, Any]]) -> AppRoute:
    """Screen to open when the user taps a notification"""
    notification_type = (data or {}).get("type")
    return ROUTES_BY_TYPE.get(notification_type, AppRoute.HOME)


class NotificationPreferences:
    """Whether the user was asked about notifications, and their answer"""

    def __init__(self, storage: KeyValueStore):
        self.storage = storage

    def _flag(self, key: str) -> bool:
        try:
            return self.storage.get_item(key) == "true"
        except OSError as e:
            logger.error(f"Error reading {key}: {e}")
            return False

    def _set_flag(self, key: str, value: bool) -> None:
        try:
            self.storage.set_item(key, "true" if value else "false")
        except OSError as e:
            logger.error(f"Error saving {key}: {e}")

    @property
    def prompt_shown(self) -> bool:
        return self._flag(NOTIFICATION_PROMPT_KEY)

    def mark_prompt_shown(self) -> None:
        self._set_flag(NOTIFICATION_PROMPT_KEY, True)

    @property
    def enabled(self) -> bool:
        return self._flag(NOTIFICATIONS_ENABLED_KEY)

    def should_prompt(self) -> bool:
        return not self.prompt_shown and not self.enabled

    async def enable(self, remote: RemoteDataService, organization_id: int, push_token: str) -> bool:
        """Register the device token with the API and remember the choice"""
        self.mark_prompt_shown()
        try:
            await remote.register_push_token(organization_id, push_token)
        except RemoteServiceError as e:
            logger.error(f"Error registering push token: {e}")
            return False
        self._set_flag(NOTIFICATIONS_ENABLED_KEY, True)
        return True

    async def disable(self, remote: RemoteDataService, organization_id: int) -> bool:
        self._set_flag(NOTIFICATIONS_ENABLED_KEY, False)
        try:
            await remote.clear_push_token(organization_id)
        except RemoteServiceError as e:
            logger.error(f"Error clearing push token: {e}")
            return False
        return True

