"""
Unit tests for the maintenance CLI.
"""
import json

import pytest

from slidetiming.cli import main
from slidetiming.services import get_fingerprint_store, get_indexer

from conftest import ML_CONTENT, ML_TITLE, make_slide


@pytest.fixture
def documents_file(tmp_path):
    path = tmp_path / "documents.jsonl"
    lines = [
        {
            "owner_id": "owner-1",
            "document_id": f"doc-{i}",
            "slides": [make_slide("s1", title=ML_TITLE, content=[ML_CONTENT], duration=duration)],
        }
        for i, duration in enumerate([10, 12, 14, 15, 13, 11, 14, 16])
    ]
    path.write_text("\n".join(json.dumps(line) for line in lines) + "\n\n", encoding="utf-8")
    return path


class TestImport:
    """Tests for the import command."""

    def test_import(self, clean_services, documents_file, capsys):
        assert main(["import", str(documents_file)]) == 0

        assert len(get_fingerprint_store().list_owner("owner-1")) == 8
        assert "Import Complete" in capsys.readouterr().out

    def test_import_is_idempotent(self, clean_services, documents_file):
        main(["import", str(documents_file)])
        main(["import", str(documents_file)])

        assert len(get_fingerprint_store().list_owner("owner-1")) == 8

    def test_bad_lines_reported(self, clean_services, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text('{"owner_id": "owner-1"}\nnot json\n', encoding="utf-8")

        assert main(["import", str(path)]) == 1

    def test_missing_file(self, clean_services, tmp_path):
        assert main(["import", str(tmp_path / "missing.jsonl")]) == 1


class TestVerify:
    """Tests for the verify command."""

    def test_clean_index(self, clean_services, capsys):
        get_indexer().on_document_created("owner-1", "doc-1", [make_slide("s1", duration=3)])

        assert main(["verify"]) == 0
        assert "Checked 1 owner(s)" in capsys.readouterr().out

    def test_drift_and_repair(self, clean_services, capsys):
        get_indexer().on_document_created("owner-1", "doc-1", [make_slide("s1", duration=3)])
        store = get_fingerprint_store()
        store.update("owner-1", store.get("doc-1", "s1").with_changes(title_normalized="stale"))

        assert main(["verify", "--owner", "owner-1"]) == 1
        assert main(["verify", "--owner", "owner-1", "--repair"]) == 0
        assert store.get("doc-1", "s1").title_normalized == "agenda"
        assert "repaired" in capsys.readouterr().out


class TestSuggest:
    """Tests for the suggest command."""

    def test_suggest(self, clean_services, documents_file, capsys):
        main(["import", str(documents_file)])
        capsys.readouterr()

        assert main(["suggest", "--owner", "owner-1", "--title", ML_TITLE, "--content", ML_CONTENT]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["suggestion"]["sampleSize"] == 8
        assert output["suggestion"]["confidence"] == "high"

    def test_suggest_nothing(self, clean_services, capsys):
        assert main(["suggest", "--owner", "owner-1", "--title", "Unknown"]) == 0
        assert json.loads(capsys.readouterr().out)["message"] == "No similar slides found"

    def test_suggest_invalid(self, clean_services, capsys):
        assert main(["suggest", "--owner", "owner-1", "--title", "   "]) == 1
