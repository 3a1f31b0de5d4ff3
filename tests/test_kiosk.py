"""
Donation Kiosk Tests

Public kiosk configuration endpoint and the kiosk screen flow.
"""
import asyncio
from decimal import Decimal

import httpx
import pytest

from app.client.api import RemoteDataService
from app.client.kiosk import (
    PAYMENT_FAILED_ERROR, KioskStateMachine, KioskStep, SimulatedGateway, format_amount, to_amount,
)
from app.models import Organization
from app.schemas.kiosk import KioskPaymentMethod, KioskSettings


def make_kiosk(remote, org_code="lotus-temple1", dwell=60.0):
    return KioskStateMachine(
        remote,
        org_code,
        gateway=SimulatedGateway(delay_seconds=0),
        success_dwell_seconds=dwell,
    )


class DecliningGateway:
    """Gateway whose first charge fails"""

    def __init__(self):
        self.calls = 0

    async def charge(self, amount, method, org_code):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("card declined")


def static_remote(payload, status_code=200):
    """RemoteDataService backed by a canned kiosk config response"""
    def handler(request):
        return httpx.Response(status_code, json=payload)

    return RemoteDataService(
        "http://kiosk.test/api/v1",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def config_payload(**kiosk):
    return {
        "organization": {
            "id": 1,
            "name": "Lotus Temple",
            "org_code": "LOTUS-TEMPLE1",
            "logo_url": None,
            "primary_color": "#4A2040",
        },
        "settings": KioskSettings(**kiosk).model_dump(mode="json"),
    }


@pytest.mark.kiosk
class TestKioskEndpoint:
    """GET /kiosk/{org_code}"""

    @pytest.mark.asyncio
    async def test_config_with_defaults(self, client, organization):
        response = await client.get("/api/v1/kiosk/lotus-temple1")

        assert response.status_code == 200
        data = response.json()
        assert data["organization"]["name"] == "Lotus Temple"
        assert data["settings"]["enabled"] is True
        assert data["settings"]["preset_amounts"] == [25, 51, 101, 251, 501, 1001]
        assert data["settings"]["payment_methods"] == ["apple_pay", "google_pay", "card"]

    @pytest.mark.asyncio
    async def test_unknown_code(self, client):
        response = await client.get("/api/v1/kiosk/NOPE-0000")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_inactive_organization_not_found(self, client, db_session):
        db_session.add(Organization(
            name="Closed Temple", slug="closed-temple", org_code="CLOSED-1", is_active=False,
            settings={"kiosk": {"enabled": True}},
        ))
        await db_session.commit()

        response = await client.get("/api/v1/kiosk/CLOSED-1")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bad_stored_fields_fall_back_to_defaults(self, client, db_session):
        db_session.add(Organization(
            name="Messy Temple", slug="messy-temple", org_code="MESSY-1", is_active=True,
            settings={"kiosk": {"enabled": True, "preset_amounts": [-5], "thank_you_message": "Namaste"}},
        ))
        await db_session.commit()

        response = await client.get("/api/v1/kiosk/messy-1")

        settings = response.json()["settings"]
        assert settings["preset_amounts"] == [25, 51, 101, 251, 501, 1001]
        assert settings["thank_you_message"] == "Namaste"


@pytest.mark.kiosk
class TestKioskFlow:
    """Screen flow driven through the real API"""

    @pytest.mark.asyncio
    async def test_preset_card_donation(self, remote, organization):
        kiosk = make_kiosk(remote)

        assert await kiosk.load() == KioskStep.AMOUNT
        assert kiosk.select_preset(25)
        assert kiosk.continue_to_payment()
        assert await kiosk.select_payment_method(KioskPaymentMethod.CARD)

        assert kiosk.history == [
            KioskStep.LOADING,
            KioskStep.AMOUNT,
            KioskStep.PAYMENT,
            KioskStep.PROCESSING,
            KioskStep.SUCCESS,
        ]
        assert kiosk.formatted_amount == "$25.00"
        assert kiosk.thank_you_message == "Thank you for your generous donation!"

    @pytest.mark.asyncio
    async def test_unknown_org_is_not_found(self, remote):
        kiosk = make_kiosk(remote, org_code="NOPE-0000")

        assert await kiosk.load() == KioskStep.NOT_FOUND

    @pytest.mark.asyncio
    async def test_disabled_kiosk(self, remote, other_organization):
        kiosk = make_kiosk(remote, org_code=other_organization.org_code)

        assert await kiosk.load() == KioskStep.DISABLED
        assert not kiosk.select_preset(25)


@pytest.mark.kiosk
class TestAmountEntry:

    @pytest.mark.asyncio
    async def test_preset_and_custom_are_exclusive(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True)))
        await kiosk.load()

        kiosk.select_preset(51)
        kiosk.enter_custom_amount("40")
        assert kiosk.preset_amount is None
        assert kiosk.selected_amount == Decimal("40")

        kiosk.select_preset(101)
        assert kiosk.custom_amount == ""
        assert kiosk.selected_amount == Decimal("101")

    @pytest.mark.asyncio
    async def test_custom_amount_truncated_to_two_decimals(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True)))
        await kiosk.load()

        assert kiosk.enter_custom_amount("12.345")
        assert kiosk.custom_amount == "12.34"
        assert not kiosk.enter_custom_amount("12a")
        assert kiosk.custom_amount == "12.34"

    @pytest.mark.asyncio
    async def test_zero_amount_cannot_continue(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True)))
        await kiosk.load()

        kiosk.enter_custom_amount("0.00")

        assert not kiosk.can_continue
        assert not kiosk.continue_to_payment()
        assert kiosk.step == KioskStep.AMOUNT

    @pytest.mark.asyncio
    async def test_custom_entry_disabled(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True, custom_amount_enabled=False)))
        await kiosk.load()

        assert not kiosk.enter_custom_amount("30")

    @pytest.mark.asyncio
    async def test_unlisted_preset_rejected(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True, preset_amounts=[10, 20])))
        await kiosk.load()

        assert not kiosk.select_preset(25)
        assert kiosk.select_preset("20")

    @pytest.mark.asyncio
    async def test_server_error_is_not_found(self):
        kiosk = make_kiosk(static_remote({"detail": "boom"}, status_code=500))

        assert await kiosk.load() == KioskStep.NOT_FOUND


@pytest.mark.kiosk
class TestPaymentAndSuccess:

    @pytest.mark.asyncio
    async def test_only_enabled_methods_offered(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True, payment_methods=["venmo"])))
        await kiosk.load()
        kiosk.select_preset(25)
        kiosk.continue_to_payment()

        assert kiosk.payment_methods == [KioskPaymentMethod.VENMO]
        assert not await kiosk.select_payment_method(KioskPaymentMethod.CARD)
        assert kiosk.step == KioskStep.PAYMENT

    @pytest.mark.asyncio
    async def test_failed_charge_returns_to_payment(self):
        gateway = DecliningGateway()
        kiosk = KioskStateMachine(static_remote(config_payload(enabled=True)), "lotus-temple1", gateway=gateway)
        await kiosk.load()
        kiosk.select_preset(51)
        kiosk.continue_to_payment()

        assert await kiosk.select_payment_method(KioskPaymentMethod.CARD) is False
        assert kiosk.step == KioskStep.PAYMENT
        assert kiosk.error == PAYMENT_FAILED_ERROR
        assert kiosk.selected_amount == Decimal("51")

        assert await kiosk.select_payment_method(KioskPaymentMethod.CARD)
        assert kiosk.step == KioskStep.SUCCESS
        assert kiosk.error is None
        kiosk.make_another_donation()

    @pytest.mark.asyncio
    async def test_back_keeps_selection(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True)))
        await kiosk.load()
        kiosk.select_preset(51)
        kiosk.continue_to_payment()

        assert kiosk.back()
        assert kiosk.step == KioskStep.AMOUNT
        assert kiosk.selected_amount == Decimal("51")

    @pytest.mark.asyncio
    async def test_auto_reset_after_dwell(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True)), dwell=0)
        await kiosk.load()
        kiosk.select_preset(25)
        kiosk.continue_to_payment()
        await kiosk.select_payment_method(KioskPaymentMethod.CARD)

        await kiosk.wait_for_reset()

        assert kiosk.step == KioskStep.AMOUNT
        assert kiosk.selected_amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_make_another_donation_resets_immediately(self):
        kiosk = make_kiosk(static_remote(config_payload(enabled=True)), dwell=60)
        await kiosk.load()
        kiosk.select_preset(25)
        kiosk.continue_to_payment()
        await kiosk.select_payment_method(KioskPaymentMethod.APPLE_PAY)
        reset_task = kiosk._reset_task

        assert kiosk.make_another_donation()
        await asyncio.gather(reset_task, return_exceptions=True)

        assert kiosk.step == KioskStep.AMOUNT
        assert reset_task.cancelled()


class TestAmountHelpers:

    def test_format_amount(self):
        assert format_amount(Decimal("1001")) == "$1,001.00"
        assert format_amount(Decimal("0.5")) == "$0.50"

    def test_to_amount(self):
        assert to_amount("12.349") == Decimal("12.34")
        assert to_amount("-3") == Decimal("0")
        assert to_amount("abc") == Decimal("0")
