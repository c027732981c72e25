from fastapi import APIRouter, Depends, HTTPException, status, Request, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime, timedelta
from typing import List

from netdesigner.core.database import get_db
from netdesigner.core.config import settings
from netdesigner.core.exceptions import IdentityProviderError
from netdesigner.core.security import (
    verify_password,
    get_password_hash,
    create_password_reset_token,
    create_email_verification_token,
    decode_typed_token,
    build_token_pair,
)
from netdesigner.core.logging_config import logger, set_user_id
from netdesigner.core.rate_limiter import limiter, auth_rate_limit
from netdesigner.models.user import User, UserRole, SubscriptionStatus
from netdesigner.models.login_history import LoginHistory
from netdesigner.models.subscription import SubscriptionPlan
from netdesigner.schemas.user import (
    UserRegister,
    UserLogin,
    UserResponse,
    RegisterResponse,
    LoginResponse,
    TokenPair,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
    ConvertTrialRequest,
)
from netdesigner.modules.auth.dependencies import get_current_user, get_current_admin
from netdesigner.services.email_service import email_service
from netdesigner.services.identity_provider import verify_identity_token


router = APIRouter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


def record_login(db: AsyncSession, user: User, request: Request) -> None:
    ip = client_ip(request)
    db.add(LoginHistory(
        user_id=user.id,
        ip_address=ip if ":" not in ip else None,
        ipv6_address=ip if ":" in ip else None,
        user_agent=request.headers.get("user-agent"),
    ))
    user.last_login = datetime.utcnow()


# ==================== Registration & Login ====================

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(
    request: Request,
    user_data: UserRegister,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Register new user (rate limited: 3/min); starts the free trial"""
    email = user_data.email.lower()

    if await get_user_by_email(db, email):
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=email,
            reason="Email already registered",
            client_ip=client_ip(request)
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists"
        )

    user = User(
        email=email,
        name=user_data.name,
        company=user_data.company,
        role=UserRole(user_data.role),
        hashed_password=get_password_hash(user_data.password),
        subscription_status=SubscriptionStatus.TRIALING,
        trial_used=True,
        trial_expires_at=datetime.utcnow() + timedelta(days=settings.TRIAL_PERIOD_DAYS),
    )
    db.add(user)
    await db.commit()

    logger.log_auth_event(event="register", success=True, user_email=email, client_ip=client_ip(request))

    background_tasks.add_task(
        email_service.send_verification_email,
        to_email=user.email,
        user_name=user.name,
        verification_token=create_email_verification_token(str(user.id), user.email),
    )

    tokens = build_token_pair(user)
    return RegisterResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        company=user.company,
        role=user.role.value,
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
    )


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit("5/minute")
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Email/password or identity-provider login (rate limited: 5/min)"""
    if credentials.id_token:
        try:
            identity = verify_identity_token(credentials.id_token)
        except IdentityProviderError as e:
            logger.log_auth_event(event="login", success=False, reason=e.message, client_ip=client_ip(request))
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        result = await db.execute(select(User).where(User.firebase_uid == identity["uid"]))
        user = result.scalar_one_or_none()
        if not user and identity.get("email"):
            user = await get_user_by_email(db, identity["email"])
            if user:
                user.firebase_uid = identity["uid"]
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    else:
        user = await get_user_by_email(db, credentials.email)
        if not user or not verify_password(credentials.password, user.hashed_password):
            logger.log_auth_event(
                event="login",
                success=False,
                user_email=credentials.email,
                reason="Invalid credentials",
                client_ip=client_ip(request)
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    record_login(db, user, request)
    await db.commit()

    set_user_id(str(user.id))
    logger.log_auth_event(event="login", success=True, user_email=user.email, client_ip=client_ip(request))

    return {"message": "Login successful", "user": user, **build_token_pair(user)}


@router.post("/refresh", response_model=TokenPair)
async def refresh_token(
    token_request: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = decode_typed_token(token_request.refresh_token, "refresh")
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = await db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    if payload.get("ver", 0) != (user.token_version or 0):
        logger.log_auth_event(event="refresh", success=False, user_email=user.email, reason="Token revoked")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token has been revoked")

    return build_token_pair(user)


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke every refresh token issued so far"""
    current_user.token_version = (current_user.token_version or 0) + 1
    await db.commit()
    logger.log_auth_event(event="logout", success=True, user_email=current_user.email)
    return {"message": "Logged out successfully"}


# ==================== Profile ====================

@router.get("/current", response_model=UserResponse)
async def get_current_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/all", response_model=List[UserResponse])
async def list_users(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """All users (admin only)"""
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return result.scalars().all()


@router.get("/profile/{user_id}", response_model=UserResponse)
async def get_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# ==================== Password & Verification ====================

@router.post("/forgot-password")
async def forgot_password(
    request_data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Always answers 200 so account existence is not revealed"""
    user = await get_user_by_email(db, request_data.email)
    if user and user.is_active:
        background_tasks.add_task(
            email_service.send_password_reset_email,
            to_email=user.email,
            user_name=user.name,
            reset_token=create_password_reset_token(str(user.id), user.email),
        )
        logger.info(f"[Auth] Password reset requested for {user.email}")

    return {"message": "If an account exists for that email, a reset link has been sent"}


@router.post("/reset-password")
async def reset_password(
    request_data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    payload = decode_typed_token(request_data.token, "password_reset")
    if not payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    user = await db.get(User, payload.get("sub"))
    if not user or user.email != payload.get("email"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    user.hashed_password = get_password_hash(request_data.new_password)
    # Existing sessions end with the old password
    user.token_version = (user.token_version or 0) + 1
    await db.commit()

    logger.log_auth_event(event="password_reset", success=True, user_email=user.email)
    return {"message": "Password has been reset successfully"}


@router.post("/verify-email")
async def verify_email(
    request_data: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    payload = decode_typed_token(request_data.token, "email_verification")
    if not payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired verification token")

    user = await db.get(User, payload.get("sub"))
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.is_verified:
        return {"message": "Email already verified"}

    user.is_verified = True
    await db.commit()
    logger.info(f"[Auth] Email verified for {user.email}")
    return {"message": "Email verified successfully"}


# ==================== Trial ====================

@router.post("/convert-trial", response_model=UserResponse)
async def convert_trial(
    request_data: ConvertTrialRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """End the trial and attach a paid plan"""
    plan = await db.get(SubscriptionPlan, request_data.plan_id)
    if not plan or not plan.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")

    now = datetime.utcnow()
    current_user.trial_used = True
    current_user.trial_expires_at = now
    current_user.subscription_plan_id = plan.id
    current_user.plan = plan
    current_user.subscription_status = SubscriptionStatus.ACTIVE
    current_user.subscription_start_date = now
    await db.commit()

    logger.info(f"[Billing] User {current_user.id} converted trial to plan {plan.name}")
    return current_user
