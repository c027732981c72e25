"""
Paystack plan synchronisation.

Mirrors the provider's active plans into subscription_plans: upserts by plan
code, derives features from the price tier and deactivates local plans that
no longer exist upstream.
"""
from typing import Dict, Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from netdesigner.core.exceptions import PaymentProviderError
from netdesigner.core.logging_config import logger
from netdesigner.models.subscription import SubscriptionPlan, BillingPeriod, DEFAULT_PLAN_FEATURES
from netdesigner.services.paystack_client import PaystackClient, paystack_client


# Amounts in kobo
PREMIUM_THRESHOLD = 500000
PROFESSIONAL_THRESHOLD = 200000

MONTHLY_INTERVALS = {"daily", "weekly", "monthly"}
ANNUAL_INTERVALS = {"quarterly", "biannually", "annually"}


def map_interval(interval: Optional[str]) -> BillingPeriod:
    interval = (interval or "").lower()
    if interval in ANNUAL_INTERVALS:
        return BillingPeriod.ANNUAL
    return BillingPeriod.MONTHLY


def features_for_amount(amount: int) -> Dict[str, Any]:
    """Feature set by price tier"""
    features = dict(DEFAULT_PLAN_FEATURES)
    features["export_formats"] = ["pdf"]

    if amount >= PREMIUM_THRESHOLD:
        features.update({
            "max_designs": 50,
            "max_team_members": 10,
            "advanced_visualization": True,
            "equipment_recommendations": True,
            "config_templates": True,
            "api_access": True,
            "priority_support": True,
            "export_formats": ["pdf", "docx", "csv"],
        })
    elif amount >= PROFESSIONAL_THRESHOLD:
        features.update({
            "max_designs": 20,
            "max_team_members": 5,
            "advanced_visualization": True,
            "equipment_recommendations": True,
            "config_templates": True,
            "export_formats": ["pdf", "docx"],
        })
    return features


def plan_values(paystack_plan: Dict[str, Any]) -> Dict[str, Any]:
    amount = int(paystack_plan.get("amount") or 0)
    features = features_for_amount(amount)
    return {
        "name": paystack_plan.get("name") or paystack_plan.get("plan_code"),
        "description": paystack_plan.get("description") or "",
        "price": amount / 100,
        "currency": paystack_plan.get("currency") or "NGN",
        "billing_period": map_interval(paystack_plan.get("interval")),
        "max_designs": features["max_designs"],
        "paystack_plan_id": str(paystack_plan.get("id")) if paystack_plan.get("id") is not None else None,
        "is_active": (paystack_plan.get("status") or "active") == "active",
        "features": features,
    }


async def sync_plans(db: AsyncSession, client: Optional[PaystackClient] = None) -> Dict[str, Any]:
    """
    Upsert every active Paystack plan and deactivate the rest.

    Returns:
        {success, synced, failed, deactivated, results} or {success: False, error}
    """
    client = client or paystack_client
    try:
        remote_plans = await client.list_plans()
    except PaymentProviderError as e:
        logger.error(f"[PlanSync] Failed to fetch plans: {e.message}")
        return {"success": False, "error": e.message}

    result = await db.execute(select(SubscriptionPlan))
    local_plans = {plan.paystack_plan_code: plan for plan in result.scalars().all()}

    results = []
    seen_codes = set()
    for remote in remote_plans:
        code = remote.get("plan_code")
        if not code:
            results.append({"success": False, "plan_code": None, "error": "Missing plan_code"})
            continue
        seen_codes.add(code)

        values = plan_values(remote)
        plan = local_plans.get(code)
        if plan is None:
            plan = SubscriptionPlan(paystack_plan_code=code, **values)
            db.add(plan)
            action = "created"
        else:
            for field, value in values.items():
                setattr(plan, field, value)
            action = "updated"
        results.append({"success": True, "plan_code": code, "action": action})

    deactivated = 0
    for code, plan in local_plans.items():
        if code not in seen_codes and plan.is_active:
            plan.is_active = False
            deactivated += 1

    await db.commit()

    synced = sum(1 for r in results if r["success"])
    failed = len(results) - synced
    logger.info(f"[PlanSync] {synced} plans synced, {failed} failed, {deactivated} deactivated")
    return {
        "success": True,
        "synced": synced,
        "failed": failed,
        "deactivated": deactivated,
        "results": results,
    }
