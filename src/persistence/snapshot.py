"""Durable snapshots of the account state.

Encoding: one JSON document validated by a versioned pydantic schema. Field names
are explicit and stable; unknown fields are ignored so newer writers stay readable,
and older schema versions are upgraded through _MIGRATIONS before validation.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.core.errors import ConfigurationInvalid, SnapshotCorrupt
from src.core.models import AccountState, Recipe, RecipeKind, TeamRole

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_SNAPSHOTS_DIR = "snapshots"


class RecipeRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: RecipeKind = RecipeKind.BASIC
    ingredients: Dict[str, int] = Field(default_factory=dict)
    premium_bonus: Optional[float] = None


class TeamRoleRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    branches: Optional[float] = None
    max_depth: Optional[int] = None
    decay: Optional[float] = None
    base_energy: Optional[float] = None
    level_energy: Optional[float] = None
    budget: Optional[float] = None


class SnapshotDocument(BaseModel):
    """Schema of a snapshot file (schema_version 1)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    schema_version: int = Field(..., ge=1)
    saved_at_ms: int = 0
    balance: float
    initial_balance: float
    inventory: Dict[str, int] = Field(default_factory=dict)
    prices: Dict[str, float] = Field(default_factory=dict)
    recipes: Dict[str, RecipeRecord] = Field(default_factory=dict)
    authorized_products: List[str] = Field(default_factory=list)
    role: Optional[TeamRoleRecord] = None

    @classmethod
    def from_state(cls, state: AccountState) -> "SnapshotDocument":
        role = state.role
        return cls(
            schema_version=SCHEMA_VERSION,
            saved_at_ms=int(time.time() * 1000),
            balance=state.balance,
            initial_balance=state.initial_balance,
            inventory=dict(state.inventory),
            prices=dict(state.prices),
            recipes={
                p: RecipeRecord(kind=r.kind, ingredients=dict(r.ingredients), premium_bonus=r.premium_bonus)
                for p, r in state.recipes.items()
            },
            authorized_products=sorted(state.authorized_products),
            role=(
                TeamRoleRecord(
                    branches=role.branches,
                    max_depth=role.max_depth,
                    decay=role.decay,
                    base_energy=role.base_energy,
                    level_energy=role.level_energy,
                    budget=role.budget,
                )
                if role is not None
                else None
            ),
        )

    def to_state(self) -> AccountState:
        role = None
        if self.role is not None:
            role = TeamRole(
                branches=self.role.branches,
                max_depth=self.role.max_depth,
                decay=self.role.decay,
                base_energy=self.role.base_energy,
                level_energy=self.role.level_energy,
                budget=self.role.budget,
            )
        return AccountState(
            balance=self.balance,
            initial_balance=self.initial_balance,
            inventory=dict(self.inventory),
            prices=dict(self.prices),
            recipes={
                p: Recipe(r.kind, dict(r.ingredients), r.premium_bonus) for p, r in self.recipes.items()
            },
            authorized_products=frozenset(self.authorized_products),
            role=role,
        )


# schema_version -> function upgrading a raw document to schema_version + 1
_MIGRATIONS: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {}


def _migrate(raw: Dict[str, Any]) -> Dict[str, Any]:
    version = raw.get("schema_version")
    if not isinstance(version, int):
        raise ValueError("missing schema_version")
    if version > SCHEMA_VERSION:
        logger.warning("Snapshot schema_version=%s is newer than %s; reading known fields", version, SCHEMA_VERSION)
        return raw
    while version < SCHEMA_VERSION:
        step = _MIGRATIONS.get(version)
        if step is None:
            raise ValueError(f"no migration from schema_version {version}")
        raw = step(raw)
        version = raw["schema_version"]
    return raw


def encode(state: AccountState) -> bytes:
    return SnapshotDocument.from_state(state).model_dump_json(indent=2).encode("utf-8")


def decode(payload: bytes, path: str = "<memory>") -> AccountState:
    """Decode a snapshot payload; anything unreadable raises SnapshotCorrupt."""
    try:
        raw = json.loads(payload.decode("utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("snapshot root is not an object")
        doc = SnapshotDocument.model_validate(_migrate(raw))
    except (UnicodeDecodeError, ValueError, ValidationError) as e:
        raise SnapshotCorrupt(path, f"not a valid account state ({e.__class__.__name__}: {e})") from e
    return doc.to_state()


class SnapshotPersistence:
    """Saves and loads AccountState files under a base directory."""

    def __init__(self, base_dir: Union[str, Path, None] = None):
        self.base_dir = Path(base_dir or DEFAULT_SNAPSHOTS_DIR)

    def _synthesize_name(self) -> str:
        return f"snapshot-{int(time.time() * 1000)}.json"

    def resolve_path(self, destination: Union[str, Path, None] = None) -> Path:
        """Concrete file path for a save; missing parent directories are created."""
        if destination is None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            return self.base_dir / self._synthesize_name()
        dest = Path(destination)
        if dest.is_dir():
            return dest / self._synthesize_name()
        dest.parent.mkdir(parents=True, exist_ok=True)
        return dest

    def save(self, state: AccountState, destination: Union[str, Path, None] = None) -> Path:
        if state is None:
            raise ConfigurationInvalid("State to save must not be None")
        try:
            path = self.resolve_path(destination)
            path.write_bytes(encode(state))
        except OSError as e:
            raise ConfigurationInvalid(f"Could not save snapshot: {e}") from e
        logger.info("Snapshot saved to %s", path.resolve())
        return path

    def load(self, path: Union[str, Path]) -> AccountState:
        """Decode a snapshot file; the caller applies it with StateStore.copy_from."""
        if path is None:
            raise ConfigurationInvalid("Snapshot path is required")
        src = Path(path)
        if not src.is_file():
            raise ConfigurationInvalid(f"No snapshot at {src.resolve()}")
        try:
            payload = src.read_bytes()
        except OSError as e:
            raise ConfigurationInvalid(f"Could not read snapshot {src}: {e}") from e
        state = decode(payload, str(src.resolve()))
        logger.info("Snapshot loaded from %s", src.resolve())
        return state
