"""
PAYSTACK SUBSCRIPTIONS
======================
Plans, checkout, recurring subscriptions and the provider webhook.

Flow:
1. Frontend lists /subscription/activeplans
2. /subscription/initialize-payment -> Paystack checkout URL
3. Paystack redirects back; frontend calls /subscription/verify-payment
4. Webhook /subscription/webhook keeps the subscription state in step
"""

from fastapi import APIRouter, Depends, HTTPException, status, Request, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
from datetime import datetime, timedelta, timezone
import json

from netdesigner.core.config import settings
from netdesigner.core.database import get_db
from netdesigner.core.exceptions import PaymentProviderError
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User, SubscriptionStatus
from netdesigner.models.subscription import (
    SubscriptionPlan, PaymentAnalytics, PaymentEvent, BillingPeriod, detect_device_type,
)
from netdesigner.schemas.subscription import (
    PlanResponse, PlanWithProviderStatus, InitializePaymentRequest, SubscribeRequest, ChangePlanRequest,
    PaymentMethodUpdate, TrackEventRequest, SubscriptionDetails, Invoice, AnalyticsSummary,
)
from netdesigner.modules.auth.dependencies import get_current_user, get_current_admin, require_subscription
from netdesigner.services.paystack_client import paystack_client, verify_webhook_signature
from netdesigner.services.plan_sync import sync_plans
from netdesigner.api.v1.endpoints.users import client_ip


router = APIRouter()

PAUSE_PERIOD = timedelta(days=30)
ANALYTICS_WINDOW_DAYS = 30


# ========== Helpers ==========

def parse_provider_date(value: Optional[str]) -> Optional[datetime]:
    """Paystack ISO timestamps as naive UTC"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"[Subscription] Unparseable provider date: {value}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def period_for(plan: SubscriptionPlan) -> timedelta:
    return timedelta(days=365 if plan.billing_period == BillingPeriod.ANNUAL else 30)


async def get_plan_or_404(db: AsyncSession, plan_id: str, active_only: bool = True) -> SubscriptionPlan:
    plan = await db.get(SubscriptionPlan, plan_id)
    if not plan or (active_only and not plan.is_active):
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


def require_provider_subscription(user: User, action: str = "manage") -> None:
    if not user.paystack_subscription_code:
        raise HTTPException(status_code=400, detail=f"No active subscription to {action}")


def record_event(
    db: AsyncSession,
    event: PaymentEvent,
    request: Request,
    payload: Optional[dict] = None,
    user_id: Optional[str] = None,
    session_id: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> PaymentAnalytics:
    user_agent = request.headers.get("user-agent", "")
    record = PaymentAnalytics(
        event=event,
        payload=payload or {},
        user_agent=user_agent,
        ip_address=client_ip(request),
        user_id=user_id,
        session_id=session_id,
        device_type=detect_device_type(user_agent),
        extra_metadata=metadata,
    )
    db.add(record)
    return record


def apply_subscription(user: User, plan: SubscriptionPlan, subscription: dict, authorization_code: Optional[str]) -> None:
    """Copy a freshly created Paystack subscription onto the user"""
    customer = subscription.get("customer") or {}
    now = datetime.utcnow()
    user.subscription_plan_id = plan.id
    user.subscription_status = SubscriptionStatus.ACTIVE
    user.subscription_start_date = now
    user.subscription_end_date = parse_provider_date(subscription.get("next_payment_date")) or now + period_for(plan)
    user.subscription_renewal = True
    user.paystack_subscription_code = subscription.get("subscription_code")
    user.paystack_email_token = subscription.get("email_token")
    if isinstance(customer, dict) and customer.get("customer_code"):
        user.paystack_customer_code = customer["customer_code"]
    if authorization_code:
        user.payment_method_id = authorization_code
    user.trial_used = True


async def disable_current(user: User) -> None:
    await paystack_client.disable_subscription(
        user.paystack_subscription_code,
        user.paystack_email_token or user.payment_method_id,
    )


async def ensure_customer(user: User) -> str:
    if user.paystack_customer_code:
        return user.paystack_customer_code
    name_parts = (user.name or "").split(" ", 1)
    customer = await paystack_client.create_customer(
        user.email,
        first_name=name_parts[0] or None,
        last_name=name_parts[1] if len(name_parts) > 1 else None,
    )
    user.paystack_customer_code = customer.get("customer_code")
    return user.paystack_customer_code


async def resubscribe(user: User, plan: SubscriptionPlan, authorization_code: str, db: AsyncSession) -> None:
    """Disable the current Paystack subscription and create one on `plan`.

    Once the old subscription is disabled a failed create leaves the user
    without a provider subscription, so the local status drops to inactive.
    """
    await disable_current(user)
    try:
        subscription = await paystack_client.create_subscription(
            user.paystack_customer_code or user.email,
            plan.paystack_plan_code,
            authorization_code,
        )
    except PaymentProviderError:
        user.subscription_status = SubscriptionStatus.INACTIVE
        user.subscription_renewal = False
        user.paystack_subscription_code = None
        user.paystack_email_token = None
        await db.commit()
        logger.warning(f"[Subscription] User {user.id} left without a subscription after a failed re-subscribe")
        raise
    apply_subscription(user, plan, subscription, authorization_code)


async def switch_plan(user: User, plan_id: str, db: AsyncSession, action: str) -> User:
    """Paystack has no in-place plan change: disable the old subscription then create a new one"""
    require_provider_subscription(user, action)
    plan = await get_plan_or_404(db, plan_id)
    if str(plan.id) == str(user.subscription_plan_id):
        raise HTTPException(status_code=400, detail="Already subscribed to this plan")

    await resubscribe(user, plan, user.payment_method_id, db)
    await db.commit()

    logger.info(f"[Subscription] User {user.id} {action}d to plan {plan.paystack_plan_code}")
    return user


# ========== Public Endpoints ==========

@router.get("/activeplans", response_model=List[PlanResponse])
async def get_active_plans(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(SubscriptionPlan).where(SubscriptionPlan.is_active == True).order_by(SubscriptionPlan.price)
    )
    return result.scalars().all()


@router.post("/initialize-payment")
async def initialize_payment(
    payment_data: InitializePaymentRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Start a Paystack checkout for a plan; open to new signups"""
    plan = await get_plan_or_404(db, payment_data.plan_id)
    callback_url = payment_data.callback_url or f"{settings.FRONTEND_URL}/payment/callback"

    record_event(db, PaymentEvent.PAYMENT_INITIALIZED, request, {"plan_id": plan.id, "email": payment_data.email})
    try:
        transaction = await paystack_client.initialize_transaction(
            email=payment_data.email,
            amount=int(round(plan.price * 100)),
            plan_code=plan.paystack_plan_code,
            callback_url=callback_url,
            metadata={"plan_id": plan.id},
        )
    except PaymentProviderError as e:
        record_event(db, PaymentEvent.PAYMENT_INITIALIZATION_FAILED, request, {"plan_id": plan.id, "error": e.message})
        await db.commit()
        raise

    record_event(db, PaymentEvent.PAYMENT_INITIALIZATION_SUCCESS, request, {"reference": transaction.get("reference")})
    await db.commit()

    logger.info(f"[Subscription] Checkout initialized for plan {plan.paystack_plan_code}")
    return {
        "authorization_url": transaction.get("authorization_url"),
        "access_code": transaction.get("access_code"),
        "reference": transaction.get("reference"),
    }


@router.get("/verify-payment")
async def verify_payment(
    request: Request,
    reference: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Confirm a checkout and activate the payer's subscription"""
    if not reference:
        record_event(db, PaymentEvent.PAYMENT_MISSING_REFERENCE, request)
        await db.commit()
        raise HTTPException(status_code=400, detail="Payment reference is required")

    record_event(db, PaymentEvent.PAYMENT_VERIFICATION_STARTED, request, {"reference": reference})
    transaction = await paystack_client.verify_transaction(reference)

    if transaction.get("status") != "success":
        record_event(db, PaymentEvent.PAYMENT_VERIFICATION_FAILED, request,
                     {"reference": reference, "status": transaction.get("status")})
        await db.commit()
        raise HTTPException(status_code=400, detail="Payment was not successful")

    customer = transaction.get("customer") or {}
    email = (customer.get("email") or "").lower()
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="No account found for this payment")

    metadata = transaction.get("metadata")
    plan_id = metadata.get("plan_id") if isinstance(metadata, dict) else None
    plan = await db.get(SubscriptionPlan, plan_id) if plan_id else None
    if plan is None:
        plan_code = (transaction.get("plan_object") or {}).get("plan_code") or transaction.get("plan")
        if isinstance(plan_code, str):
            plan = (await db.execute(
                select(SubscriptionPlan).where(SubscriptionPlan.paystack_plan_code == plan_code)
            )).scalar_one_or_none()

    now = datetime.utcnow()
    user.subscription_status = SubscriptionStatus.ACTIVE
    user.subscription_start_date = now
    user.trial_used = True
    if customer.get("customer_code"):
        user.paystack_customer_code = customer["customer_code"]
    authorization = transaction.get("authorization") or {}
    if authorization.get("authorization_code"):
        user.payment_method_id = authorization["authorization_code"]
    if plan:
        user.subscription_plan_id = plan.id
        user.subscription_end_date = now + period_for(plan)

    record_event(db, PaymentEvent.PAYMENT_VERIFICATION_SUCCESS, request, {"reference": reference}, user_id=user.id)
    await db.commit()

    logger.info(f"[Subscription] Payment {reference} verified for user {user.id}")
    return {
        "message": "Payment verified successfully",
        "status": "active",
        "reference": reference,
        "amount": (transaction.get("amount") or 0) / 100,
        "plan": PlanResponse.model_validate(plan) if plan else None,
    }


@router.post("/webhook")
async def paystack_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    x_paystack_signature: str = Header(None, alias="x-paystack-signature")
):
    """
    Paystack webhook endpoint.

    Handles:
    - subscription.create
    - charge.success / invoice.payment_success
    - invoice.payment_failed
    - subscription.disable / subscription.not_renew
    """
    body = await request.body()
    if not verify_webhook_signature(body, x_paystack_signature):
        logger.warning("[Webhook] Invalid webhook signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature"
        )

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    event = payload.get("event")
    data = payload.get("data") or {}
    if not isinstance(event, str) or not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    logger.info(f"[Webhook] Received event: {event}")

    handler = WEBHOOK_HANDLERS.get(event)
    if handler is None:
        logger.info(f"[Webhook] Unhandled event type: {event}")
        return {"status": "ok"}

    user = await _find_webhook_user(data, db)
    if user is None:
        logger.warning(f"[Webhook] No user matches {event}")
        return {"status": "ok"}

    await handler(user, data, db)
    await db.commit()
    return {"status": "ok"}


async def _find_webhook_user(data: dict, db: AsyncSession) -> Optional[User]:
    subscription = data.get("subscription") or {}
    code = data.get("subscription_code") or (subscription.get("subscription_code") if isinstance(subscription, dict) else None)
    if code:
        user = (await db.execute(
            select(User).where(User.paystack_subscription_code == code)
        )).scalar_one_or_none()
        if user:
            return user

    email = ((data.get("customer") or {}).get("email") or "").lower()
    if not email:
        return None
    return (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()


async def _plan_from_event(data: dict, db: AsyncSession) -> Optional[SubscriptionPlan]:
    plan = data.get("plan") or {}
    plan_code = plan.get("plan_code") if isinstance(plan, dict) else None
    if not plan_code:
        return None
    result = await db.execute(select(SubscriptionPlan).where(SubscriptionPlan.paystack_plan_code == plan_code))
    return result.scalar_one_or_none()


def _event_end_date(data: dict) -> Optional[datetime]:
    subscription = data.get("subscription") if isinstance(data.get("subscription"), dict) else {}
    return parse_provider_date(data.get("next_payment_date") or subscription.get("next_payment_date"))


async def _handle_subscription_create(user: User, data: dict, db: AsyncSession):
    user.subscription_status = SubscriptionStatus.ACTIVE
    user.paystack_subscription_code = data.get("subscription_code") or user.paystack_subscription_code
    user.paystack_email_token = data.get("email_token") or user.paystack_email_token
    customer_code = (data.get("customer") or {}).get("customer_code")
    if customer_code:
        user.paystack_customer_code = customer_code
    plan = await _plan_from_event(data, db)
    if plan:
        user.subscription_plan_id = plan.id
    user.subscription_start_date = user.subscription_start_date or datetime.utcnow()
    user.subscription_end_date = _event_end_date(data) or user.subscription_end_date
    logger.info(f"[Webhook] Subscription created for user {user.id}")


async def _handle_payment_success(user: User, data: dict, db: AsyncSession):
    user.subscription_status = SubscriptionStatus.ACTIVE
    end_date = _event_end_date(data)
    if end_date:
        user.subscription_end_date = end_date
    logger.info(f"[Webhook] Payment succeeded for user {user.id}")


async def _handle_payment_failed(user: User, data: dict, db: AsyncSession):
    user.subscription_status = SubscriptionStatus.PAST_DUE
    logger.warning(f"[Webhook] Payment failed for user {user.id}")


async def _handle_subscription_disabled(user: User, data: dict, db: AsyncSession):
    user.subscription_status = SubscriptionStatus.CANCELED
    user.subscription_renewal = False
    logger.info(f"[Webhook] Subscription canceled for user {user.id}")


WEBHOOK_HANDLERS = {
    "subscription.create": _handle_subscription_create,
    "charge.success": _handle_payment_success,
    "invoice.payment_success": _handle_payment_success,
    "invoice.payment_failed": _handle_payment_failed,
    "subscription.disable": _handle_subscription_disabled,
    "subscription.not_renew": _handle_subscription_disabled,
}


# ========== Subscriber Endpoints ==========

@router.get("/plans", response_model=List[PlanWithProviderStatus])
async def get_plans(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active plans flagged with whether Paystack still lists them"""
    result = await db.execute(
        select(SubscriptionPlan).where(SubscriptionPlan.is_active == True).order_by(SubscriptionPlan.price)
    )
    remote_codes = {p.get("plan_code") for p in await paystack_client.list_plans()}
    return [
        PlanWithProviderStatus(
            **PlanResponse.model_validate(plan).model_dump(),
            paystack_active=plan.paystack_plan_code in remote_codes,
        )
        for plan in result.scalars().all()
    ]


@router.post("/")
async def create_subscription(
    subscribe_data: SubscribeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    plan = await get_plan_or_404(db, subscribe_data.plan_id)
    if not subscribe_data.authorization_code:
        raise HTTPException(status_code=400, detail="Authorization code is required")

    customer = await ensure_customer(current_user)
    subscription = await paystack_client.create_subscription(
        customer, plan.paystack_plan_code, subscribe_data.authorization_code
    )
    apply_subscription(current_user, plan, subscription, subscribe_data.authorization_code)
    await db.commit()

    logger.info(f"[Subscription] User {current_user.id} subscribed to {plan.paystack_plan_code}")
    return {
        "message": "Subscription created successfully",
        "subscription_code": current_user.paystack_subscription_code,
        "subscription": current_user.subscription,
    }


@router.delete("/")
async def cancel_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    require_provider_subscription(current_user, "cancel")
    await disable_current(current_user)

    current_user.subscription_status = SubscriptionStatus.CANCELED
    current_user.subscription_renewal = False
    await db.commit()

    logger.info(f"[Subscription] User {current_user.id} canceled their subscription")
    return {"message": "Subscription canceled successfully"}


@router.put("/upgrade")
async def upgrade_subscription(
    change: ChangePlanRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await switch_plan(current_user, change.plan_id, db, "upgrade")
    return {"message": "Subscription upgraded successfully", "subscription": user.subscription}


@router.put("/downgrade")
async def downgrade_subscription(
    change: ChangePlanRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await switch_plan(current_user, change.plan_id, db, "downgrade")
    return {"message": "Subscription downgraded successfully", "subscription": user.subscription}


@router.get("/details", response_model=SubscriptionDetails)
async def get_subscription_details(current_user: User = Depends(get_current_user)):
    """Local subscription state, enriched from Paystack when a subscription exists"""
    details = SubscriptionDetails(
        plan=PlanResponse.model_validate(current_user.plan) if current_user.plan else None,
        status=current_user.subscription_status.value,
        start_date=current_user.subscription_start_date,
        end_date=current_user.subscription_end_date,
        renewal=current_user.subscription_renewal,
        trial={**current_user.trial, "active": current_user.trial_active},
    )
    if current_user.paystack_subscription_code:
        remote = await paystack_client.fetch_subscription(current_user.paystack_subscription_code)
        details.amount = (remote.get("amount") or 0) / 100
        details.next_payment_date = remote.get("next_payment_date")
    return details


@router.put("/payment-method")
async def update_payment_method(
    method: PaymentMethodUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Re-subscribe to the same plan with a new card authorization"""
    require_provider_subscription(current_user, "update")
    plan = await get_plan_or_404(db, current_user.subscription_plan_id, active_only=False)

    await resubscribe(current_user, plan, method.authorization_code, db)
    await db.commit()

    logger.info(f"[Subscription] User {current_user.id} updated their payment method")
    return {"message": "Payment method updated successfully", "subscription": current_user.subscription}


@router.get("/invoices", response_model=List[Invoice])
async def get_invoices(current_user: User = Depends(get_current_user)):
    if not current_user.paystack_customer_code:
        raise HTTPException(status_code=400, detail="No customer record found")

    transactions = await paystack_client.list_transactions(current_user.paystack_customer_code)
    return [
        Invoice(
            reference=t.get("reference") or str(t.get("id")),
            amount=(t.get("amount") or 0) / 100,
            currency=t.get("currency"),
            status=t.get("status") or "unknown",
            paid_at=t.get("paid_at"),
            channel=t.get("channel"),
        )
        for t in transactions
    ]


@router.post("/pause")
async def pause_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Local pause only: Paystack has no pause API"""
    require_provider_subscription(current_user, "pause")
    current_user.subscription_status = SubscriptionStatus.PAUSED
    current_user.subscription_end_date = datetime.utcnow() + PAUSE_PERIOD
    await db.commit()

    logger.info(f"[Subscription] User {current_user.id} paused until {current_user.subscription_end_date:%Y-%m-%d}")
    return {
        "message": "Subscription paused. You will not be charged until reactivated.",
        "status": SubscriptionStatus.PAUSED.value,
        "end_date": current_user.subscription_end_date,
    }


@router.post("/reactivate")
async def reactivate_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    require_provider_subscription(current_user, "reactivate")
    remote = await paystack_client.fetch_subscription(current_user.paystack_subscription_code)

    current_user.subscription_status = SubscriptionStatus.ACTIVE
    current_user.subscription_end_date = parse_provider_date(remote.get("next_payment_date")) or current_user.subscription_end_date
    current_user.subscription_renewal = True
    await db.commit()

    logger.info(f"[Subscription] User {current_user.id} reactivated")
    return {
        "message": "Subscription reactivated successfully",
        "status": SubscriptionStatus.ACTIVE.value,
        "next_payment_date": remote.get("next_payment_date"),
    }


@router.post("/track-event", status_code=status.HTTP_201_CREATED)
async def track_payment_event(
    event_data: TrackEventRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        event = PaymentEvent(event_data.event)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown payment event '{event_data.event}'")

    record = record_event(
        db, event, request,
        payload=event_data.payload,
        user_id=current_user.id,
        session_id=event_data.session_id,
        metadata=event_data.metadata,
    )
    await db.commit()
    return {"message": "Event tracked", "id": record.id}


@router.get("/premium-feature")
async def premium_feature(current_user: User = Depends(require_subscription("advanced_visualization"))):
    return {"message": "Premium feature accessed"}


# ========== Admin Endpoints ==========

@router.post("/sync-plans")
async def sync_plans_endpoint(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await sync_plans(db)
    if not result["success"]:
        raise HTTPException(status_code=502, detail=result["error"])
    return result


@router.post("/sync-plans-now")
async def sync_plans_now(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Manual sync that refuses to run against an empty plan list"""
    remote_plans = await paystack_client.list_plans()
    if not remote_plans:
        raise HTTPException(status_code=404, detail="No active plans found in Paystack")

    result = await sync_plans(db)
    if not result["success"]:
        raise HTTPException(status_code=502, detail=result["error"])
    created = sum(1 for r in result["results"] if r.get("action") == "created")
    return {
        "message": (
            f"Synchronization complete. {result['synced']} plans processed, "
            f"{result['failed']} failed, {result['deactivated']} plans deactivated."
        ),
        "stats": {
            "total_paystack_plans": len(remote_plans),
            "created": created,
            "updated": result["synced"] - created,
            "failed": result["failed"],
            "deactivated": result["deactivated"],
        },
        "details": result["results"],
    }


@router.get("/paystack-plans")
async def get_paystack_plans(admin: User = Depends(get_current_admin)):
    return {"plans": await paystack_client.list_plans()}


@router.get("/analytics", response_model=AnalyticsSummary)
async def get_payment_analytics(
    days: int = Query(ANALYTICS_WINDOW_DAYS, ge=1, le=365),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Event counts, device split and checkout conversion over a window"""
    since = datetime.utcnow() - timedelta(days=days)

    event_rows = await db.execute(
        select(PaymentAnalytics.event, func.count(PaymentAnalytics.id))
        .where(PaymentAnalytics.created_at >= since)
        .group_by(PaymentAnalytics.event)
    )
    events = {event.value: count for event, count in event_rows.all()}

    device_rows = await db.execute(
        select(PaymentAnalytics.device_type, func.count(PaymentAnalytics.id))
        .where(PaymentAnalytics.created_at >= since)
        .group_by(PaymentAnalytics.device_type)
    )
    devices = {device.value if device else "unknown": count for device, count in device_rows.all()}

    recent_rows = await db.execute(
        select(PaymentAnalytics)
        .where(PaymentAnalytics.created_at >= since)
        .order_by(PaymentAnalytics.created_at.desc())
        .limit(20)
    )
    recent = [
        {"event": r.event.value, "user_id": r.user_id, "device_type": r.device_type.value if r.device_type else None,
         "created_at": r.created_at.isoformat()}
        for r in recent_rows.scalars().all()
    ]

    initialized = events.get(PaymentEvent.PAYMENT_INITIALIZED.value, 0)
    completed = events.get(PaymentEvent.PAYMENT_COMPLETE.value, 0) + events.get(
        PaymentEvent.PAYMENT_VERIFICATION_SUCCESS.value, 0
    )
    conversion_rate = round(completed / initialized * 100, 2) if initialized else 0.0

    return AnalyticsSummary(
        total_events=sum(events.values()),
        events=events,
        devices=devices,
        conversion_rate=conversion_rate,
        period_days=days,
        recent=recent,
    )
