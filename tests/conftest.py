import pytest

from lead_intake.core.config import IntakeConfig, Settings
from lead_intake.models.buyer import BuyerTarget, DispatchMode
from lead_intake.models.vertical import Vertical
from lead_intake.services.row_store import InMemoryRowStore

AUTO_BUYER = BuyerTarget(
    name="auto_buyer",
    verticals=frozenset({Vertical.AUTO}),
    endpoint_url="https://auto-buyer.example.com/leads",
    auth_token="auto-token",
)
HOME_BUYER = BuyerTarget(
    name="home_buyer",
    verticals=frozenset({Vertical.HOME}),
    endpoint_url="https://home-buyer.example.com/leads",
    auth_token=None,
)

VALID_LEAD = {
    "email": "  A@B.com ",
    "phone": "(555) 123-4567",
    "first_name": "Alice",
    "last_name": "Smith",
    "zip": "78701",
    "lead_type": "auto",
    "vehicle_year": "2019",
    "vehicle_make": "Honda",
    "vehicle_model": "Civic",
    "tcpa_text": "I agree to be contacted.",
    "source_url": "https://searchnrate.com/auto",
    "utm_source": "google",
}


def make_settings(**env) -> Settings:
    values = {
        "ENVIRONMENT": "testing",
        "ROW_STORE_BACKEND": "memory",
        "METRICS_ENABLED": False,
    }
    values.update(env)
    return Settings(_env_file=None, **values)


def make_config(**overrides) -> IntakeConfig:
    values = {
        "dispatch_mode": DispatchMode.DRY_RUN,
        "buyers": (AUTO_BUYER, HOME_BUYER),
        "environment": "testing",
    }
    values.update(overrides)
    return IntakeConfig(**values)


@pytest.fixture
def store() -> InMemoryRowStore:
    return InMemoryRowStore()


@pytest.fixture
def config() -> IntakeConfig:
    return make_config()


@pytest.fixture
def live_config() -> IntakeConfig:
    return make_config(dispatch_mode=DispatchMode.LIVE)
