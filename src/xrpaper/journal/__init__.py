"""Journal layer: auth and storage collaborators, snapshots, workflow and reports."""

from xrpaper.journal.auth import AuthProvider, LocalAuthProvider, Session
from xrpaper.journal.duckdb_store import DuckDBJournalStore, open_journal_duckdb
from xrpaper.journal.snapshots import (
    StudyInputs,
    build_snapshot,
    normalize_snapshot_record,
    snapshot_context,
)
from xrpaper.journal.store import LevelFilter, LevelStore, SnapshotStore
from xrpaper.journal.workflow import (
    ExecutionView,
    JournalService,
    StudyRequest,
    StudyResult,
    study_request_from_raw,
)

__all__ = [
    "AuthProvider",
    "DuckDBJournalStore",
    "ExecutionView",
    "JournalService",
    "LevelFilter",
    "LevelStore",
    "LocalAuthProvider",
    "Session",
    "SnapshotStore",
    "StudyInputs",
    "StudyRequest",
    "StudyResult",
    "build_snapshot",
    "normalize_snapshot_record",
    "open_journal_duckdb",
    "snapshot_context",
    "study_request_from_raw",
]
