"""
Pytest fixtures - test DB, client, auth and fake collaborators.
Challenge: Isolated tests; no Postgres, Redis, broker or payment gateway needed.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.cache.redis_client import UserLock, get_checkout_lock
from app.config import get_settings
from app.core.guards import DEFAULT_PERMISSIONS, AuthContext, Permission
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.models import CartItem, Item, User
from app.db.session import get_db
from app.main import app
from app.payments.fake_gateway import FakeGateway
from app.payments.gateway import get_payment_gateway
from app.services.notification_service import get_reset_notifier

# In-memory SQLite shared by every connection of one test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


class FakeRedis:
    """Just enough of redis.asyncio.Redis for UserLock."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def set(self, name, value, nx=False, ex=None):
        if nx and name in self.store:
            return None
        self.store[name] = value
        return True

    async def eval(self, script, numkeys, key, token):
        if self.store.get(key) == token:
            del self.store[key]
            return 1
        return 0


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def send_reset(self, email: str, reset_token: str) -> None:
        self.sent.append((email, reset_token))


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as s:
        yield s


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def lock(redis) -> UserLock:
    return UserLock(redis, ttl_seconds=60)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(session: AsyncSession, gateway, lock, notifier):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_checkout_lock] = lambda: lock
    app.dependency_overrides[get_reset_notifier] = lambda: notifier
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session: AsyncSession):
    async def _make(email: str, permissions=None, password: str = "password123") -> User:
        user = User(
            email=email,
            name=email.split("@")[0].title(),
            hashed_password=hash_password(password),
            permissions=[p.value for p in (DEFAULT_PERMISSIONS if permissions is None else permissions)],
        )
        session.add(user)
        await session.flush()
        await session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_item(session: AsyncSession):
    async def _make(owner: User, title: str = "Test Item", price_cents: int = 999) -> Item:
        item = Item(
            title=title,
            description=f"{title} description",
            image=f"https://img.example.com/{title}.jpg",
            large_image=f"https://img.example.com/{title}-large.jpg",
            price_cents=price_cents,
            owner_id=owner.id,
        )
        session.add(item)
        await session.flush()
        await session.refresh(item)
        return item

    return _make


@pytest.fixture
def put_in_cart(session: AsyncSession):
    async def _put(user: User, item: Item, quantity: int = 1) -> CartItem:
        cart_item = CartItem(user_id=user.id, item_id=item.id, quantity=quantity)
        session.add(cart_item)
        await session.flush()
        await session.refresh(cart_item)
        return cart_item

    return _put


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    return await make_user("test@example.com")


@pytest_asyncio.fixture
async def other_user(make_user) -> User:
    return await make_user("other@example.com")


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin@example.com", permissions=[Permission.USER, Permission.ADMIN])


def bearer(user: User) -> dict:
    token = create_access_token(user.id, get_settings())
    return {"Authorization": f"Bearer {token}"}


def auth_for(user: User) -> AuthContext:
    return AuthContext(user_id=user.id, user=user)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return bearer(test_user)
