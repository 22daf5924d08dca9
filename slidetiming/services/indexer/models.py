"""
Data models for the fingerprint indexer.
"""

from dataclasses import dataclass, asdict


@dataclass
class IndexingStats:
    """Write counts for one indexer hook invocation."""
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0

    @property
    def writes(self) -> int:
        """Store writes issued; skipped slides cost nothing."""
        return self.inserted + self.updated + self.deleted

    def merge(self, other: "IndexingStats") -> "IndexingStats":
        """Accumulate another run's counts into this one."""
        self.inserted += other.inserted
        self.updated += other.updated
        self.deleted += other.deleted
        self.skipped += other.skipped
        return self

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["writes"] = self.writes
        return data

    def __str__(self) -> str:
        return (
            f"Inserted: {self.inserted}, "
            f"Updated: {self.updated}, "
            f"Deleted: {self.deleted}, "
            f"Skipped: {self.skipped}"
        )


@dataclass
class DriftReport:
    """One fingerprint whose normalized fields disagree with its raw fields."""
    owner_id: str
    source_document_id: str
    source_slide_id: str
    fields: list[str]
    repaired: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)
