"""
SQLite-backed fingerprint store.

The normalizer and the trigram similarity function are registered as SQL
functions on every connection, so index-time and query-time evaluation run
the exact same Python code.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from slidetiming.core.errors import (
    DuplicateFingerprintError,
    FingerprintNotFoundError,
    OwnerMismatchError,
    StoreUnavailableError,
)
from slidetiming.models.fingerprint import FingerprintField, SlideFingerprint

from .normalizer import normalize
from .store import FingerprintStore, check_field, check_threshold
from .trigram import trigram_similarity

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS slide_fingerprints (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    source_document_id TEXT NOT NULL,
    source_slide_id TEXT NOT NULL,
    title TEXT NOT NULL,
    content_text TEXT NOT NULL,
    duration_minutes REAL NOT NULL CHECK (duration_minutes > 0),
    title_normalized TEXT NOT NULL,
    content_normalized TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (source_document_id, source_slide_id)
);
CREATE INDEX IF NOT EXISTS idx_slide_fingerprints_owner ON slide_fingerprints (owner_id);
CREATE INDEX IF NOT EXISTS idx_slide_fingerprints_document
    ON slide_fingerprints (owner_id, source_document_id);
"""

_COLUMNS = (
    "id", "owner_id", "source_document_id", "source_slide_id", "title",
    "content_text", "duration_minutes", "title_normalized", "content_normalized",
    "created_at", "updated_at",
)


def _row_to_fingerprint(row: sqlite3.Row) -> SlideFingerprint:
    return SlideFingerprint(
        id=row["id"],
        owner_id=row["owner_id"],
        source_document_id=row["source_document_id"],
        source_slide_id=row["source_slide_id"],
        title=row["title"],
        content_text=row["content_text"],
        duration_minutes=row["duration_minutes"],
        title_normalized=row["title_normalized"],
        content_normalized=row["content_normalized"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _fingerprint_params(fp: SlideFingerprint) -> tuple:
    return (
        fp.id, fp.owner_id, fp.source_document_id, fp.source_slide_id, fp.title,
        fp.content_text, fp.duration_minutes, fp.title_normalized, fp.content_normalized,
        fp.created_at.isoformat(), fp.updated_at.isoformat(),
    )


class SQLiteFingerprintStore(FingerprintStore):
    """
    Fingerprint store persisted in a SQLite database file.

    Each read opens its own connection; WAL journaling lets reads proceed
    while a document transaction is writing. A transaction binds one
    connection to the calling thread until it commits or rolls back.
    """

    backend_name = "sqlite"

    def __init__(self, db_path: Path, timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._local = threading.local()
        self.ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.create_function("normalize_text", 1, normalize, deterministic=True)
            conn.create_function("trigram_similarity", 2, trigram_similarity, deterministic=True)
            return conn
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailableError(f"Cannot open fingerprint database {self.db_path}: {e}") from e

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the thread's transaction connection, or a short-lived one."""
        active = getattr(self._local, "conn", None)
        if active is not None:
            try:
                yield active
            except sqlite3.IntegrityError:
                raise
            except sqlite3.Error as e:
                raise StoreUnavailableError(f"Fingerprint query failed: {e}") from e
            return

        conn = self._connect()
        try:
            yield conn
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Fingerprint query failed: {e}") from e
        finally:
            conn.close()

    def ensure_tables(self) -> None:
        """Create the schema if it doesn't exist."""
        with self._connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)

    def ping(self) -> None:
        with self._connection() as conn:
            conn.execute("SELECT 1").fetchone()

    @contextmanager
    def transaction(self) -> Iterator["SQLiteFingerprintStore"]:
        """BEGIN IMMEDIATE ... COMMIT; nested calls join the outer transaction."""
        if getattr(self._local, "conn", None) is not None:
            yield self
            return

        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            conn.close()
            raise StoreUnavailableError(f"Cannot start fingerprint transaction: {e}") from e

        self._local.conn = conn
        try:
            yield self
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                raise StoreUnavailableError(f"Cannot commit fingerprint transaction: {e}") from e
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
                logger.debug("Rolled back fingerprint transaction")
            raise
        finally:
            self._local.conn = None
            conn.close()

    # -- reads ----------------------------------------------------------------

    def get(self, source_document_id: str, source_slide_id: str) -> Optional[SlideFingerprint]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM slide_fingerprints WHERE source_document_id = ? AND source_slide_id = ?",
                (source_document_id, source_slide_id),
            ).fetchone()
        return _row_to_fingerprint(row) if row else None

    def list_document(self, owner_id: str, source_document_id: str) -> list[SlideFingerprint]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM slide_fingerprints WHERE owner_id = ? AND source_document_id = ? "
                "ORDER BY source_slide_id",
                (owner_id, source_document_id),
            ).fetchall()
        return [_row_to_fingerprint(row) for row in rows]

    def list_owner(self, owner_id: str) -> list[SlideFingerprint]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM slide_fingerprints WHERE owner_id = ? "
                "ORDER BY source_document_id, source_slide_id",
                (owner_id,),
            ).fetchall()
        return [_row_to_fingerprint(row) for row in rows]

    def owner_ids(self) -> list[str]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT DISTINCT owner_id FROM slide_fingerprints ORDER BY owner_id"
            ).fetchall()
        return [row["owner_id"] for row in rows]

    def find_similar(
        self,
        owner_id: str,
        normalized_text: str,
        threshold: float,
        field: FingerprintField = "title",
    ) -> list[tuple[SlideFingerprint, float]]:
        check_field(field)
        check_threshold(threshold)
        column = f"{field}_normalized"
        query = f"""
            SELECT * FROM (
                SELECT *, trigram_similarity({column}, ?) AS score
                FROM slide_fingerprints
                WHERE owner_id = ?
            )
            WHERE score > ?
            ORDER BY score DESC, source_document_id, source_slide_id
        """
        with self._connection() as conn:
            rows = conn.execute(query, (normalized_text, owner_id, threshold)).fetchall()
        return [(_row_to_fingerprint(row), row["score"]) for row in rows]

    # -- writes ---------------------------------------------------------------

    def create(self, owner_id: str, fingerprint: SlideFingerprint) -> None:
        existing = self.get(*fingerprint.key)
        self.check_writable(owner_id, fingerprint, existing)
        if existing is not None:
            raise DuplicateFingerprintError(
                f"Fingerprint already exists for {fingerprint.source_document_id}/"
                f"{fingerprint.source_slide_id}"
            )
        placeholders = ", ".join("?" for _ in _COLUMNS)
        try:
            with self._connection() as conn:
                conn.execute(
                    f"INSERT INTO slide_fingerprints ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                    _fingerprint_params(fingerprint),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateFingerprintError(str(e)) from e

    def update(self, owner_id: str, fingerprint: SlideFingerprint) -> None:
        existing = self.get(*fingerprint.key)
        self.check_writable(owner_id, fingerprint, existing)
        if existing is None:
            raise FingerprintNotFoundError(
                f"No fingerprint for {fingerprint.source_document_id}/{fingerprint.source_slide_id}"
            )
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE slide_fingerprints SET
                    title = ?, content_text = ?, duration_minutes = ?,
                    title_normalized = ?, content_normalized = ?, updated_at = ?
                WHERE source_document_id = ? AND source_slide_id = ? AND owner_id = ?
                """,
                (
                    fingerprint.title,
                    fingerprint.content_text,
                    fingerprint.duration_minutes,
                    fingerprint.title_normalized,
                    fingerprint.content_normalized,
                    fingerprint.updated_at.isoformat(),
                    fingerprint.source_document_id,
                    fingerprint.source_slide_id,
                    owner_id,
                ),
            )

    def delete(self, owner_id: str, source_document_id: str, source_slide_id: str) -> bool:
        existing = self.get(source_document_id, source_slide_id)
        if existing is None:
            return False
        if existing.owner_id != owner_id:
            raise OwnerMismatchError(owner_id, existing.owner_id)
        with self._connection() as conn:
            conn.execute(
                "DELETE FROM slide_fingerprints WHERE source_document_id = ? AND source_slide_id = ?",
                (source_document_id, source_slide_id),
            )
        return True

    def delete_document(self, owner_id: str, source_document_id: str) -> int:
        with self.transaction():
            with self._connection() as conn:
                owners = [
                    row["owner_id"] for row in conn.execute(
                        "SELECT DISTINCT owner_id FROM slide_fingerprints WHERE source_document_id = ?",
                        (source_document_id,),
                    )
                ]
                foreign = next((owner for owner in owners if owner != owner_id), None)
                if foreign is not None:
                    raise OwnerMismatchError(owner_id, foreign)
                cursor = conn.execute(
                    "DELETE FROM slide_fingerprints WHERE source_document_id = ?",
                    (source_document_id,),
                )
                return cursor.rowcount
