"""
Index drift detection and repair.

A fingerprint has drifted when its stored normalized fields differ from a
fresh normalization of its raw fields, e.g. after the normalizer changed or a
row was edited out of band. Drift is logged as an integrity fault and fixed by
re-deriving the fingerprint; it is never ignored.
"""
import logging

from slidetiming.core.errors import IndexDriftError
from slidetiming.models.fingerprint import SlideFingerprint
from slidetiming.services.fingerprints import FingerprintStore, drifted_fields, refresh_fingerprint

from .models import DriftReport

logger = logging.getLogger(__name__)


def check_fingerprint(fingerprint: SlideFingerprint) -> None:
    """
    Raise if a fingerprint's normalized fields are stale.

    Raises:
        IndexDriftError: one or more normalized fields disagree
    """
    fields = drifted_fields(fingerprint)
    if fields:
        raise IndexDriftError(fingerprint.source_document_id, fingerprint.source_slide_id, fields)


class IndexVerifier:
    """Scans an owner's fingerprints for drift and repairs it on request."""

    def __init__(self, store: FingerprintStore):
        self._store = store

    def find_drift(self, owner_id: str) -> list[DriftReport]:
        """Report every drifted fingerprint of an owner."""
        reports = []
        for fingerprint in self._store.list_owner(owner_id):
            try:
                check_fingerprint(fingerprint)
            except IndexDriftError as e:
                logger.error(f"Index drift detected: {e}")
                reports.append(DriftReport(
                    owner_id=owner_id,
                    source_document_id=e.source_document_id,
                    source_slide_id=e.source_slide_id,
                    fields=e.fields,
                ))
        return reports

    def repair(self, owner_id: str) -> list[DriftReport]:
        """
        Force re-derivation of every drifted fingerprint of an owner.

        All repairs commit in one transaction.

        Returns:
            Reports for the repaired fingerprints
        """
        reports = self.find_drift(owner_id)
        if not reports:
            return reports

        with self._store.transaction():
            for report in reports:
                fingerprint = self._store.get(report.source_document_id, report.source_slide_id)
                if fingerprint is None:
                    continue
                self._store.update(
                    owner_id,
                    refresh_fingerprint(
                        fingerprint,
                        fingerprint.title,
                        fingerprint.content_text,
                        fingerprint.duration_minutes,
                    ),
                )
                report.repaired = True

        logger.info(f"✓ Repaired {sum(r.repaired for r in reports)} drifted fingerprint(s) for {owner_id}")
        return reports
