"""
Donation kiosk screen flow.

loading -> not_found | disabled | amount -> payment -> processing -> success -> amount
"""
import asyncio
import enum
import logging
import re
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from app.client.api import RemoteDataService
from app.client.config import ClientConfig
from app.client.errors import RemoteServiceError
from app.schemas.kiosk import KioskPaymentMethod, KioskSettings
from app.utils.validators import is_valid_amount_input, parse_amount

logger = logging.getLogger(__name__)

OVERLONG_DECIMALS_PATTERN = re.compile(r"^(\d*\.\d{2})\d+$")
CENTS = Decimal("0.01")
PAYMENT_FAILED_ERROR = "Payment could not be completed. Please try again."


class KioskStep(str, enum.Enum):
    LOADING = "loading"
    NOT_FOUND = "not_found"
    DISABLED = "disabled"
    AMOUNT = "amount"
    PAYMENT = "payment"
    PROCESSING = "processing"
    SUCCESS = "success"


class PaymentGateway(Protocol):
    """Where a real card / wallet processor plugs in"""

    async def charge(self, amount: Decimal, method: KioskPaymentMethod, org_code: str) -> None:
        ...


class SimulatedGateway:
    """Waits a fixed time and always succeeds; no money moves"""

    def __init__(self, delay_seconds: float = 2.0):
        self.delay_seconds = delay_seconds

    async def charge(self, amount: Decimal, method: KioskPaymentMethod, org_code: str) -> None:
        logger.info(f"Simulated {method.value} donation of {format_amount(amount)} to {org_code}")
        await asyncio.sleep(self.delay_seconds)


def format_amount(amount: Decimal) -> str:
    return f"${amount.quantize(CENTS):,.2f}"


def to_amount(value: Any) -> Decimal:
    """Parse to a non-negative amount with at most two decimals; bad input is 0"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite() or amount < 0:
        return Decimal("0")
    return amount.quantize(CENTS, rounding=ROUND_DOWN)


class KioskStateMachine:
    """
    One kiosk device showing one organization's donation screen.

    Preset and custom amounts are mutually exclusive: choosing one clears the
    other. After ``success`` the machine returns to ``amount`` on its own after
    the dwell time, or at once via ``make_another_donation()``.
    """

    def __init__(
        self,
        remote: RemoteDataService,
        org_code: str,
        gateway: Optional[PaymentGateway] = None,
        success_dwell_seconds: float = 8.0,
    ):
        self.remote = remote
        self.org_code = org_code
        self.gateway = gateway or SimulatedGateway()
        self.success_dwell_seconds = success_dwell_seconds

        self.step = KioskStep.LOADING
        self.history: List[KioskStep] = [KioskStep.LOADING]
        self.organization: Optional[Dict[str, Any]] = None
        self.settings = KioskSettings()

        self.preset_amount: Optional[Decimal] = None
        self.custom_amount = ""
        self.payment_method: Optional[KioskPaymentMethod] = None
        self.completed_amount: Optional[Decimal] = None
        self.error: Optional[str] = None
        self._reset_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, config: ClientConfig, remote: RemoteDataService, org_code: str) -> "KioskStateMachine":
        return cls(
            remote,
            org_code,
            gateway=SimulatedGateway(config.kiosk_processing_seconds),
            success_dwell_seconds=config.kiosk_success_dwell_seconds,
        )

    def _go(self, step: KioskStep) -> None:
        self.step = step
        self.history.append(step)

    # ==================== LOADING ====================

    async def load(self) -> KioskStep:
        try:
            config = await self.remote.get_kiosk_config(self.org_code)
            settings = KioskSettings.model_validate(config.get("settings") or {})
        except (RemoteServiceError, ValidationError, AttributeError) as e:
            logger.info(f"Kiosk unavailable for {self.org_code}: {e}")
            self._go(KioskStep.NOT_FOUND)
            return self.step

        self.organization = config.get("organization")
        self.settings = settings
        self._go(KioskStep.AMOUNT if settings.enabled else KioskStep.DISABLED)
        return self.step

    # ==================== AMOUNT ====================

    @property
    def preset_amounts(self) -> List[Decimal]:
        return [to_amount(value) for value in self.settings.preset_amounts]

    @property
    def selected_amount(self) -> Decimal:
        if self.preset_amount is not None:
            return self.preset_amount
        return parse_amount(self.custom_amount)

    @property
    def can_continue(self) -> bool:
        return self.step == KioskStep.AMOUNT and self.selected_amount > 0

    def select_preset(self, value: Any) -> bool:
        if self.step != KioskStep.AMOUNT:
            return False
        amount = to_amount(value)
        if amount not in self.preset_amounts:
            return False
        self.preset_amount = amount
        self.custom_amount = ""
        return True

    def enter_custom_amount(self, text: str) -> bool:
        """
        Update the custom amount field.

        Input with more than two decimals is cut to two; anything else that is
        not a plain amount is ignored and the field keeps its value.
        """
        if self.step != KioskStep.AMOUNT or not self.settings.custom_amount_enabled:
            return False

        text = (text or "").strip()
        if not is_valid_amount_input(text):
            overlong = OVERLONG_DECIMALS_PATTERN.match(text)
            if not overlong:
                return False
            text = overlong.group(1)

        self.custom_amount = text
        self.preset_amount = None
        return True

    def continue_to_payment(self) -> bool:
        if not self.can_continue:
            return False
        self.error = None
        self._go(KioskStep.PAYMENT)
        return True

    # ==================== PAYMENT ====================

    @property
    def payment_methods(self) -> List[KioskPaymentMethod]:
        return list(self.settings.payment_methods)

    def back(self) -> bool:
        if self.step != KioskStep.PAYMENT:
            return False
        self._go(KioskStep.AMOUNT)
        return True

    async def select_payment_method(self, method: KioskPaymentMethod) -> bool:
        if self.step != KioskStep.PAYMENT or method not in self.settings.payment_methods:
            return False

        amount = self.selected_amount
        self.payment_method = method
        self._go(KioskStep.PROCESSING)

        try:
            await self.gateway.charge(amount, method, self.org_code)
        except Exception as e:
            logger.error(f"Kiosk payment of {format_amount(amount)} via {method.value} failed for {self.org_code}: {e}")
            self.error = PAYMENT_FAILED_ERROR
            self._go(KioskStep.PAYMENT)
            return False

        self.error = None
        self.completed_amount = amount
        self._go(KioskStep.SUCCESS)
        self._reset_task = asyncio.ensure_future(self._reset_after_dwell())
        return True

    # ==================== SUCCESS ====================

    @property
    def thank_you_message(self) -> str:
        return self.settings.thank_you_message

    @property
    def formatted_amount(self) -> str:
        amount = self.completed_amount if self.step == KioskStep.SUCCESS else self.selected_amount
        return format_amount(amount or Decimal("0"))

    async def _reset_after_dwell(self) -> None:
        await asyncio.sleep(self.success_dwell_seconds)
        if self.step == KioskStep.SUCCESS:
            self._reset()

    def _reset(self) -> None:
        self.preset_amount = None
        self.custom_amount = ""
        self.payment_method = None
        self.completed_amount = None
        self.error = None
        self._go(KioskStep.AMOUNT)

    def make_another_donation(self) -> bool:
        if self.step != KioskStep.SUCCESS:
            return False
        if self._reset_task is not None and not self._reset_task.done():
            self._reset_task.cancel()
        self._reset_task = None
        self._reset()
        return True

    async def wait_for_reset(self) -> None:
        if self._reset_task is not None:
            await self._reset_task
