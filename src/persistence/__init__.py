"""Account snapshot persistence."""

from src.persistence.snapshot import SCHEMA_VERSION, SnapshotDocument, SnapshotPersistence, decode, encode

__all__ = ["SCHEMA_VERSION", "SnapshotDocument", "SnapshotPersistence", "encode", "decode"]
