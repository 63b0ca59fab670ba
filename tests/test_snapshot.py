"""Tests for SnapshotPersistence: round trip, path synthesis, corrupt and missing files."""

import json

import pytest

from src.core.errors import ConfigurationInvalid, SnapshotCorrupt
from src.core.models import AccountState, Recipe, TeamRole
from src.engine.state import StateStore
from src.persistence.snapshot import SCHEMA_VERSION, SnapshotPersistence, decode, encode


@pytest.fixture
def populated_state(store) -> AccountState:
    store.adjust_balance(-123.45)
    store.subtract_inventory("SEBO", 9)  # negative quantities survive a round trip
    store.assign_role(
        TeamRole(branches=1.5, max_depth=4, decay=0.9, base_energy=3.0, level_energy=1.25, budget=500.0)
    )
    return store.export_state()


class TestRoundTrip:
    def test_save_then_load_restores_every_field(self, tmp_path, populated_state):
        persistence = SnapshotPersistence(tmp_path)
        path = persistence.save(populated_state)
        loaded = persistence.load(path)
        assert loaded == populated_state
        assert loaded.inventory["SEBO"] == -5
        assert loaded.recipes["GUACAMOLE_PREMIUM"] == Recipe.premium({"GUACA": 5, "SEBO": 3}, 1.3)

    def test_empty_state(self, tmp_path):
        persistence = SnapshotPersistence(tmp_path)
        state = AccountState()
        assert persistence.load(persistence.save(state)) == state

    def test_restore_into_store(self, tmp_path, populated_state):
        persistence = SnapshotPersistence(tmp_path)
        path = persistence.save(populated_state)
        target = StateStore()
        target.copy_from(persistence.load(path))
        assert target.export_state() == populated_state

    def test_document_is_versioned_json(self, populated_state):
        doc = json.loads(encode(populated_state))
        assert doc["schema_version"] == SCHEMA_VERSION
        assert doc["role"]["max_depth"] == 4
        assert sorted(doc["authorized_products"]) == ["GUACA", "GUACAMOLE_PREMIUM", "SEBO"]


class TestPaths:
    def test_synthesized_name_under_base_dir(self, tmp_path, populated_state):
        base = tmp_path / "nested" / "snapshots"
        path = SnapshotPersistence(base).save(populated_state)
        assert path.parent == base
        assert path.name.startswith("snapshot-") and path.suffix == ".json"

    def test_directory_destination(self, tmp_path, populated_state):
        target_dir = tmp_path / "out"
        target_dir.mkdir()
        path = SnapshotPersistence(tmp_path).save(populated_state, target_dir)
        assert path.parent == target_dir

    def test_explicit_file_creates_parents(self, tmp_path, populated_state):
        dest = tmp_path / "a" / "b" / "state.json"
        assert SnapshotPersistence(tmp_path).save(populated_state, dest) == dest
        assert dest.is_file()

    def test_io_failure_is_configuration_invalid(self, tmp_path, populated_state):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ConfigurationInvalid):
            SnapshotPersistence(tmp_path).save(populated_state, blocker / "child.json")


class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationInvalid) as exc:
            SnapshotPersistence(tmp_path).load(tmp_path / "nope.json")
        assert not isinstance(exc.value, SnapshotCorrupt)

    @pytest.mark.parametrize(
        "payload",
        [
            b"\x00\x01garbage",
            b"[1, 2, 3]",
            b'{"balance": 1.0}',
            b'{"schema_version": 1, "balance": "lots", "initial_balance": 0}',
        ],
    )
    def test_corrupt_payload(self, tmp_path, payload):
        path = tmp_path / "bad.json"
        path.write_bytes(payload)
        with pytest.raises(SnapshotCorrupt) as exc:
            SnapshotPersistence(tmp_path).load(path)
        assert exc.value.path == str(path.resolve())

    def test_unknown_fields_are_ignored(self, populated_state):
        doc = json.loads(encode(populated_state))
        doc["schema_version"] = SCHEMA_VERSION + 1
        doc["loyalty_points"] = 7
        assert decode(json.dumps(doc).encode("utf-8")) == populated_state

    def test_failed_load_leaves_store_untouched(self, tmp_path, store):
        path = tmp_path / "bad.json"
        path.write_bytes(b"{}")
        before = store.export_state()
        with pytest.raises(SnapshotCorrupt):
            store.copy_from(SnapshotPersistence(tmp_path).load(path))
        assert store.export_state() == before
