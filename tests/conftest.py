import os
import tempfile

# Must be set before lupora.config is imported anywhere
_db_dir = tempfile.mkdtemp(prefix="lupora-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["DEBUG"] = "true"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_secret"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from lupora.database import Base, SessionLocal, engine, init_db
from lupora.main import app
from lupora.models.product import Product, Media
from lupora.utils.cache import TTLCache
from lupora.utils.notifications import NotificationDispatcher

OWNER_EMAIL = "owner@lupora.test"

SHIPPING = {
    "fullName": "Asha Rao",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


class Outbox:
    """Collects emails instead of sending them"""

    def __init__(self):
        self.messages = []
        self.fail = False

    def send(self, message):
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.messages.append(message)
        return True


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_database():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def client(outbox, clock):
    app.state.catalog_cache = TTLCache(300, clock=clock)
    app.state.notification_dispatcher = NotificationDispatcher(sender=outbox.send, owner_email=OWNER_EMAIL)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def products(db):
    """Two catalog products: A at 100.00 and B at 250.50"""
    product_a = Product(name="Flora Divina", category="Floral", image="/flora-divina.webp",
                        price=Decimal("100.00"), description="Florals")
    product_b = Product(name="Oud Mystique", category="Woody", image="/oud-mystique.webp",
                        price=Decimal("250.50"), description="Oud")
    db.add_all([product_a, product_b])
    db.add(Media(name="Lupora Hero", type="video", url="/lupora-hero-video.mp4"))
    db.commit()
    return {"a": product_a.id, "b": product_b.id}


def register(client, name="Asha Rao", email="asha@example.com", password="secret123"):
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    body = response.json()
    return {
        "id": body["user"]["id"],
        "token": body["token"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest.fixture
def user(client):
    return register(client)


@pytest.fixture
def other_user(client):
    return register(client, name="Ravi Kumar", email="ravi@example.com")
