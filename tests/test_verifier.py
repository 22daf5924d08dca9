"""
Unit tests for index drift detection and repair.
"""
import logging

import pytest

from slidetiming.core.errors import IndexDriftError
from slidetiming.services.indexer import IndexVerifier, check_fingerprint

from conftest import make_fingerprint


@pytest.fixture
def drifted_store(store):
    """One healthy and one drifted fingerprint for owner-1."""
    store.create("owner-1", make_fingerprint(slide_id="ok"))
    fp = make_fingerprint(slide_id="bad")
    store.create("owner-1", fp.with_changes(content_normalized="out of band edit"))
    return store


class TestCheckFingerprint:
    """Tests for check_fingerprint()."""

    def test_healthy(self):
        check_fingerprint(make_fingerprint())

    def test_drifted(self):
        fp = make_fingerprint().with_changes(title_normalized="stale", content_normalized="stale")

        with pytest.raises(IndexDriftError) as exc_info:
            check_fingerprint(fp)
        assert exc_info.value.fields == ["title_normalized", "content_normalized"]
        assert exc_info.value.source_slide_id == "slide-1"


class TestIndexVerifier:
    """Tests for IndexVerifier."""

    def test_find_drift(self, drifted_store, caplog):
        """Drift is reported and logged at ERROR."""
        with caplog.at_level(logging.ERROR):
            reports = IndexVerifier(drifted_store).find_drift("owner-1")

        assert [(r.source_slide_id, r.fields, r.repaired) for r in reports] == [
            ("bad", ["content_normalized"], False)
        ]
        assert any("drift" in record.message for record in caplog.records)

    def test_other_owner_clean(self, drifted_store):
        assert IndexVerifier(drifted_store).find_drift("owner-2") == []

    def test_repair(self, drifted_store):
        """Repair re-derives the normalized fields and keeps identity."""
        before = drifted_store.get("doc-1", "bad")
        verifier = IndexVerifier(drifted_store)

        reports = verifier.repair("owner-1")

        assert [r.repaired for r in reports] == [True]
        after = drifted_store.get("doc-1", "bad")
        assert after.id == before.id
        assert after.content_normalized == "what is ml supervised learning unsupervised learning"
        assert verifier.find_drift("owner-1") == []

    def test_repair_nothing(self, store):
        store.create("owner-1", make_fingerprint())
        assert IndexVerifier(store).repair("owner-1") == []

    def test_report_to_dict(self, drifted_store):
        report = IndexVerifier(drifted_store).find_drift("owner-1")[0]
        assert report.to_dict() == {
            "owner_id": "owner-1",
            "source_document_id": "doc-1",
            "source_slide_id": "bad",
            "fields": ["content_normalized"],
            "repaired": False,
        }
