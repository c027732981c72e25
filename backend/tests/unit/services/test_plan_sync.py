"""
Unit Tests for Paystack plan synchronisation
"""
from unittest.mock import AsyncMock

from sqlalchemy import select

from netdesigner.core.exceptions import PaymentProviderError
from netdesigner.models.subscription import SubscriptionPlan, BillingPeriod
from netdesigner.services.plan_sync import features_for_amount, map_interval, plan_values, sync_plans


class TestPlanValues:

    def test_feature_tiers(self):
        assert features_for_amount(100000)["config_templates"] is False
        assert features_for_amount(200000)["max_designs"] == 20
        assert features_for_amount(200000)["api_access"] is False
        premium = features_for_amount(500000)
        assert premium["max_designs"] == 50
        assert premium["export_formats"] == ["pdf", "docx", "csv"]

    def test_interval_mapping(self):
        assert map_interval("annually") == BillingPeriod.ANNUAL
        assert map_interval("monthly") == BillingPeriod.MONTHLY
        assert map_interval(None) == BillingPeriod.MONTHLY

    def test_plan_values_convert_kobo(self):
        values = plan_values({"plan_code": "PLN_x", "name": "Pro", "amount": 250000, "id": 42})

        assert values["price"] == 2500
        assert values["paystack_plan_id"] == "42"
        assert values["max_designs"] == 20
        assert values["is_active"] is True


class TestSyncPlans:

    async def test_upserts_and_deactivates(self, db_session, basic_plan):
        stale = SubscriptionPlan(name="Legacy", price=1000, paystack_plan_code="PLN_legacy")
        db_session.add(stale)
        await db_session.commit()

        client = AsyncMock()
        client.list_plans.return_value = [
            {"plan_code": "PLN_basic", "name": "Basic", "amount": 150000, "interval": "monthly"},
            {"plan_code": "PLN_new", "name": "Enterprise", "amount": 900000, "interval": "annually"},
            {"name": "Broken"},
        ]

        result = await sync_plans(db_session, client)

        assert result["success"] is True
        assert result["synced"] == 2
        assert result["failed"] == 1
        assert result["deactivated"] == 1

        plans = {
            p.paystack_plan_code: p
            for p in (await db_session.execute(select(SubscriptionPlan))).scalars().all()
        }
        assert plans["PLN_basic"].price == 1500
        assert plans["PLN_new"].billing_period == BillingPeriod.ANNUAL
        assert plans["PLN_new"].features["api_access"] is True
        assert plans["PLN_legacy"].is_active is False

    async def test_provider_failure(self, db_session):
        client = AsyncMock()
        client.list_plans.side_effect = PaymentProviderError("down")

        result = await sync_plans(db_session, client)

        assert result == {"success": False, "error": "down"}
