"""Pytest fixtures for trading agent tests."""

import sys
import threading
from pathlib import Path

import pytest
import yaml

# Ensure project root is in path for src imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from src.connector.base import ExchangeConnector  # noqa: E402
from src.core.errors import ConnectionFailed  # noqa: E402
from src.core.metrics import Metrics  # noqa: E402
from src.core.models import Recipe, TeamRole  # noqa: E402
from src.engine.state import StateStore  # noqa: E402
from src.execution.operations import TradingOperations  # noqa: E402
from src.execution.order_ids import OrderIdSequence  # noqa: E402
from src.production.catalog import RecipeCatalog  # noqa: E402
from src.production.resolver import RecipeResolver  # noqa: E402


class FakeConnector(ExchangeConnector):
    """Records every outbound call; connect() can be told to fail."""

    def __init__(self):
        self._lock = threading.Lock()
        self.listeners = []
        self.connects = []
        self.orders = []
        self.production_updates = []
        self.offer_responses = []
        self.logins = []
        self.fail_connect = False
        self.fail_send = False

    def connect(self, host, api_key):
        with self._lock:
            self.connects.append((host, api_key))
        if self.fail_connect:
            raise ConnectionFailed(f"cannot reach {host}")

    def add_listener(self, handler):
        self.listeners.append(handler)

    def send_order(self, order):
        if self.fail_send:
            raise RuntimeError("socket closed")
        with self._lock:
            self.orders.append(order)

    def send_production_update(self, product, quantity):
        with self._lock:
            self.production_updates.append((product, quantity))

    def send_offer_response(self, offer_id, accept, quantity, price):
        with self._lock:
            self.offer_responses.append((offer_id, accept, quantity, price))

    def send_login(self, api_key):
        self.logins.append(api_key)


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


@pytest.fixture
def project_root() -> Path:
    return _project_root()


@pytest.fixture
def config_path(project_root: Path) -> Path:
    return project_root / "config" / "config.yaml.example"


@pytest.fixture
def config(config_path: Path) -> dict:
    """Load config dict from YAML."""
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@pytest.fixture
def catalog(project_root: Path, config: dict) -> RecipeCatalog:
    cat = config.get("catalog", {})
    return RecipeCatalog.load(
        str(project_root / "config" / "recipes.yaml.example"),
        cat.get("team_aliases"),
        cat.get("species_aliases"),
    )


@pytest.fixture
def role() -> TeamRole:
    # levels 0..2: 10 + 15 + 20 = 45 units per cycle
    return TeamRole(branches=1.0, max_depth=2, decay=1.0, base_energy=10.0, level_energy=5.0)


@pytest.fixture
def store(role: TeamRole) -> StateStore:
    """Logged-in account: balance 1000, GUACA/SEBO basic, GUACAMOLE_PREMIUM premium."""
    s = StateStore()
    s.set_initial_balance(1000.0)
    s.replace_inventory({"GUACA": 10, "SEBO": 4})
    s.register_price("GUACA", 12.0)
    s.register_price("SEBO", 20.0)
    s.assign_recipes(
        {
            "GUACA": Recipe.basic(),
            "SEBO": Recipe.basic(),
            "GUACAMOLE_PREMIUM": Recipe.premium({"GUACA": 5, "SEBO": 3}, 1.3),
        }
    )
    s.assign_authorized_products({"GUACA", "SEBO", "GUACAMOLE_PREMIUM"})
    s.assign_role(role)
    return s


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def metrics() -> Metrics:
    return Metrics()


@pytest.fixture
def resolver(store: StateStore) -> RecipeResolver:
    return RecipeResolver(store)


@pytest.fixture
def operations(store, connector, resolver, metrics) -> TradingOperations:
    return TradingOperations(store, connector, resolver, OrderIdSequence(), metrics)
