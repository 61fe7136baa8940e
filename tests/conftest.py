"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import hashlib
import hmac
import json
import os
import sys
import time
from decimal import Decimal

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Test environment must be in place before config is imported anywhere
TEST_STRIPE_WEBHOOK_SECRET = "whsec_storefront_test_secret_0123456789"
TEST_IDENTITY_SIGNING_SECRET = "identity_signing_secret_for_tests_0123456789"
TEST_IDENTITY_WEBHOOK_SECRET = "identity_webhook_secret_for_tests_0123456789"

os.environ["RUNTIME_ENVIRONMENT"] = "TEST"
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CURRENCY", "USD")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_storefront0123456789")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", TEST_STRIPE_WEBHOOK_SECRET)
os.environ.setdefault("IDENTITY_SIGNING_SECRET", TEST_IDENTITY_SIGNING_SECRET)
os.environ.setdefault("IDENTITY_WEBHOOK_SECRET", TEST_IDENTITY_WEBHOOK_SECRET)
os.environ.setdefault("REDIS_URL", "")

import config
from db import Database
from models.payment import LineItemManifestEntryDTO, PaymentSessionDTO
from models.product import ProductDTO, ProductVariantDTO
from models.user import UserDTO
from repositories.catalog import CatalogRepository
from repositories.user import UserRepository
from services.checkout import CheckoutService
from services.order_ledger import OrderLedgerService
from services.payment_gateway import StripeGateway
from services.webhook import WebhookReceiver
from utils.transaction_manager import TransactionManager


# ============================================================================
# Helpers
# ============================================================================

def stripe_signature_header(payload: bytes | str, secret: str = TEST_STRIPE_WEBHOOK_SECRET,
                            timestamp: int | None = None) -> str:
    """Stripe-Signature header the way Stripe computes it: t=<ts>,v1=HMAC_SHA256(secret, "<ts>.<payload>")."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    timestamp = timestamp if timestamp is not None else int(time.time())
    signature = hmac.new(secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"),
                         hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, order_id: int | str | None, payment_intent: str | None = "pi_test_123",
                 event_id: str = "evt_test_1") -> bytes:
    """Minimal Stripe event body; order_id=None leaves the metadata empty."""
    metadata = {} if order_id is None else {"orderId": str(order_id)}
    event_object = {"id": "cs_test_abc", "object": "checkout.session", "metadata": metadata}
    if payment_intent is not None:
        event_object["payment_intent"] = payment_intent
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": event_object}}).encode("utf-8")


class FakePaymentGateway(StripeGateway):
    """
    StripeGateway with session creation replaced by an in-memory stub.

    Webhook verification stays real. Queue exceptions in `failures` to make the
    next create_session calls fail in order.
    """

    def __init__(self):
        super().__init__(api_key="sk_test_storefront0123456789", webhook_secret=TEST_STRIPE_WEBHOOK_SECRET)
        self.sessions: list[dict] = []
        self.failures: list[Exception] = []

    async def create_session(self, order_id: int, manifest: list[LineItemManifestEntryDTO],
                             success_url: str, cancel_url: str) -> PaymentSessionDTO:
        if self.failures:
            raise self.failures.pop(0)
        self.sessions.append({
            "order_id": order_id,
            "manifest": manifest,
            "success_url": success_url,
            "cancel_url": cancel_url,
        })
        return PaymentSessionDTO(session_id=f"cs_test_order_{order_id}",
                                 url=f"https://checkout.stripe.com/c/pay/cs_test_order_{order_id}")


# ============================================================================
# Config Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    """No backoff sleeps between retry attempts."""
    monkeypatch.setattr(config, "RETRY_DELAY_BASE", 0)
    monkeypatch.setattr(config, "MAX_RETRIES", 2)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def database():
    """In-memory order store with all tables created."""
    test_database = Database("sqlite+aiosqlite:///:memory:")
    await test_database.create_all()
    yield test_database
    await test_database.dispose()


@pytest_asyncio.fixture
async def user(database) -> UserDTO:
    """Signed-in shopper known to the identity provider."""
    async with TransactionManager.atomic_transaction(database) as session:
        user_id = await UserRepository.create(UserDTO(
            external_id="user_2shopper",
            email="shopper@example.com",
            first_name="Ana",
            last_name="Lopez",
        ), session)
    return UserDTO(id=user_id, external_id="user_2shopper", email="shopper@example.com")


@pytest_asyncio.fixture
async def other_user(database) -> UserDTO:
    async with TransactionManager.atomic_transaction(database) as session:
        user_id = await UserRepository.create(UserDTO(external_id="user_2other", email="other@example.com"), session)
    return UserDTO(id=user_id, external_id="user_2other", email="other@example.com")


@pytest.fixture
def empanadas() -> ProductDTO:
    return ProductDTO(
        id="empanadas",
        name="Empanadas",
        base_price=Decimal("4.00"),
        category="food",
        variants=[],
    )


@pytest.fixture
def churros() -> ProductDTO:
    return ProductDTO(
        id="churros",
        name="Churros",
        base_price=Decimal("4.00"),
        category="dessert",
        variants=[
            ProductVariantDTO(label="3 pieces", price=Decimal("4.00")),
            ProductVariantDTO(label="5 pieces", price=Decimal("7.00")),
        ],
    )


@pytest_asyncio.fixture
async def catalog(database, empanadas, churros) -> dict[str, ProductDTO]:
    """Products stored in the catalog, re-read so variants carry their ids."""
    async with TransactionManager.atomic_transaction(database) as session:
        await CatalogRepository.upsert_product(empanadas, session)
        await CatalogRepository.upsert_product(churros, session)
    async with TransactionManager.atomic_transaction(database) as session:
        return await CatalogRepository.get_products_by_ids(["empanadas", "churros"], session)


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def ledger(database) -> OrderLedgerService:
    return OrderLedgerService(database)


@pytest.fixture
def checkout_service(database, ledger, gateway) -> CheckoutService:
    return CheckoutService(database, ledger, gateway)


@pytest.fixture
def webhook_receiver(ledger, gateway) -> WebhookReceiver:
    return WebhookReceiver(ledger, gateway)


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()
