"""
Kiosk Schemas
Typed view of ``Organization.settings["kiosk"]`` with defaults
"""
import enum
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class KioskPaymentMethod(str, enum.Enum):
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"
    CARD = "card"
    VENMO = "venmo"


DEFAULT_PRESET_AMOUNTS = [25, 51, 101, 251, 501, 1001]
DEFAULT_THANK_YOU_MESSAGE = "Thank you for your generous donation!"


class KioskSettings(BaseModel):
    """Donation kiosk configuration, stored per organization"""
    enabled: bool = False
    preset_amounts: List[float] = Field(default_factory=lambda: list(DEFAULT_PRESET_AMOUNTS))
    custom_amount_enabled: bool = True
    payment_methods: List[KioskPaymentMethod] = Field(
        default_factory=lambda: [
            KioskPaymentMethod.APPLE_PAY,
            KioskPaymentMethod.GOOGLE_PAY,
            KioskPaymentMethod.CARD,
        ]
    )
    thank_you_message: str = DEFAULT_THANK_YOU_MESSAGE
    show_org_logo: bool = True
    require_email: bool = False

    @field_validator("preset_amounts")
    @classmethod
    def presets_positive(cls, value: List[float]) -> List[float]:
        if any(amount <= 0 for amount in value):
            raise ValueError("Preset amounts must be positive")
        return value

    @field_validator("payment_methods")
    @classmethod
    def dedupe_methods(cls, value: List[KioskPaymentMethod]) -> List[KioskPaymentMethod]:
        return list(dict.fromkeys(value))

    @classmethod
    def from_settings_blob(cls, settings_blob: Optional[Dict[str, Any]]) -> "KioskSettings":
        """
        Build kiosk settings from an organization settings blob.

        Stored fields override defaults; fields that fail validation are dropped
        and fall back to their default instead of failing the whole read.
        """
        stored = (settings_blob or {}).get("kiosk") or {}
        if not isinstance(stored, dict):
            return cls()

        data = {key: value for key, value in stored.items() if key in cls.model_fields}
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            bad_fields = {error["loc"][0] for error in e.errors() if error["loc"]}
            logger.warning(f"Ignoring invalid kiosk settings fields: {sorted(bad_fields)}")
            return cls.model_validate(
                {key: value for key, value in data.items() if key not in bad_fields}
            )


class KioskOrganization(BaseModel):
    """Public branding shown on the kiosk screen"""
    id: int
    name: str
    org_code: str
    logo_url: Optional[str] = None
    primary_color: str


class KioskConfigResponse(BaseModel):
    """Response for the public kiosk endpoint"""
    organization: KioskOrganization
    settings: KioskSettings
