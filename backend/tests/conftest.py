"""
NetDesigner - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from faker import Faker

# Set testing environment
TEST_DIR = tempfile.mkdtemp(prefix="netdesigner-tests-")
os.environ['TESTING'] = 'true'
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = f"sqlite+aiosqlite:///{os.path.join(TEST_DIR, 'test.db')}"
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['STORAGE_MODE'] = 'local'
os.environ['UPLOAD_DIR'] = os.path.join(TEST_DIR, 'uploads')
os.environ['PLAN_SYNC_ENABLED'] = 'false'
os.environ['PAYSTACK_SECRET_KEY'] = 'sk_test_secret'
os.environ['SMTP_USER'] = ''

from netdesigner.main import app
from netdesigner.core.database import Base, get_engine, get_session_local
from netdesigner.models.user import User, UserRole, SubscriptionStatus
from netdesigner.models.subscription import SubscriptionPlan
from netdesigner.core.security import get_password_hash, build_token_pair

fake = Faker()


@pytest.fixture(autouse=True)
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema for each test"""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting rows outside the API"""
    async with get_session_local()() as session:
        yield session


@pytest.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """Test client against the real app and database"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


async def make_user(db_session: AsyncSession, role: UserRole = UserRole.USER, **fields) -> User:
    user = User(
        email=fake.unique.email().lower(),
        hashed_password=get_password_hash('testpassword123'),
        name=fake.name(),
        company=fake.company(),
        role=role,
        is_active=True,
        is_verified=True,
        **fields
    )
    db_session.add(user)
    await db_session.commit()
    return user


def headers_for(user: User) -> dict:
    return {'Authorization': f"Bearer {build_token_pair(user)['access_token']}"}


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user (inside the free trial)"""
    return await make_user(db_session)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await make_user(db_session)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin test user"""
    return await make_user(db_session, role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return headers_for(test_user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return headers_for(other_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return headers_for(admin_user)


@pytest.fixture
async def basic_plan(db_session: AsyncSession) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        name="Basic",
        description="Starter plan",
        price=5000.0,
        currency="NGN",
        max_designs=2,
        paystack_plan_code="PLN_basic",
        features={"max_designs": 2, "config_templates": False, "advanced_visualization": False},
    )
    db_session.add(plan)
    await db_session.commit()
    return plan


@pytest.fixture
async def pro_plan(db_session: AsyncSession) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        name="Professional",
        description="Everything unlocked",
        price=20000.0,
        currency="NGN",
        max_designs=50,
        paystack_plan_code="PLN_pro",
        features={"max_designs": 50, "config_templates": True, "advanced_visualization": True},
    )
    db_session.add(plan)
    await db_session.commit()
    return plan


@pytest.fixture
async def expired_trial_user(db_session: AsyncSession) -> User:
    """Trial consumed, no plan"""
    return await make_user(
        db_session,
        trial_used=True,
        trial_expires_at=fake.past_datetime(start_date='-30d'),
        subscription_status=SubscriptionStatus.INACTIVE,
    )


@pytest.fixture
def design_payload() -> dict:
    return {
        "design_name": "Head Office LAN",
        "description": fake.sentence(),
        "is_existing_network": False,
        "requirements": {
            "total_users": "51-200",
            "wired_users": 120,
            "wireless_users": 40,
            "network_segmentation": True,
            "segments": [
                {"name": "Engineering", "type": "department", "users": 60, "bandwidth_priority": "critical"},
                {"name": "Finance", "type": "department", "users": 25},
                {"name": "Guests", "type": "guest", "users": 20, "isolation_level": "vlans"},
            ],
            "bandwidth": {"upload": 100, "download": 200, "symmetric": False},
            "services": {"cloud": ["saas"], "on_premise": ["fileserver"], "network": ["dhcp", "dns"]},
            "ip_scheme": {"private": "10.0.0.0/8", "public_ips": 4, "ipv6": False},
            "security_requirements": {"firewall": "enterprise", "ids": False, "remote_access": "rdp"},
            "redundancy": {"internet": False, "core_switching": True, "power": False},
            "budget_range": "medium",
        },
    }


@pytest.fixture
async def design(client: AsyncClient, auth_headers: dict, design_payload: dict) -> dict:
    """A design created through the API by test_user"""
    response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["design"]
