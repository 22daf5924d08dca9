"""
Pytest configuration and fixtures.
"""
import pytest

from slidetiming.core import Settings, get_settings
from slidetiming.services import reset_services
from slidetiming.services.fingerprints import (
    InMemoryFingerprintStore,
    SQLiteFingerprintStore,
    build_fingerprint,
)
from slidetiming.services.indexer import IncrementalIndexer


ML_TITLE = "Introduction to Machine Learning"
ML_CONTENT = "What is ML? Supervised learning. Unsupervised learning."
ML_DURATIONS = [10, 12, 14, 15, 13, 11, 14, 16]


def make_slide(slide_id: str, title: str = "Agenda", content=None, duration: float = 5) -> dict:
    """Slide payload in the shape the document store sends."""
    return {
        "id": slide_id,
        "title": title,
        "content": content if content is not None else [f"Body of {slide_id}"],
        "duration": duration,
    }


def make_fingerprint(
    owner_id: str = "owner-1",
    document_id: str = "doc-1",
    slide_id: str = "slide-1",
    title: str = ML_TITLE,
    content: str = ML_CONTENT,
    duration: float = 10,
):
    return build_fingerprint(owner_id, document_id, slide_id, title, content, duration)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the real data directory."""
    return Settings(data_dir=tmp_path / "data", store_backend="memory", _env_file=None)


@pytest.fixture
def memory_store():
    return InMemoryFingerprintStore()


@pytest.fixture
def sqlite_store(tmp_path):
    return SQLiteFingerprintStore(tmp_path / "fingerprints.db")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store backend in turn."""
    if request.param == "memory":
        return InMemoryFingerprintStore()
    return SQLiteFingerprintStore(tmp_path / "fingerprints.db")


@pytest.fixture
def indexer(memory_store):
    return IncrementalIndexer(memory_store)


@pytest.fixture
def ml_store(memory_store):
    """Eight timed 'Introduction to Machine Learning' slides across documents."""
    for i, duration in enumerate(ML_DURATIONS):
        memory_store.create(
            "owner-1",
            make_fingerprint(document_id=f"doc-{i}", slide_id="s1", duration=duration),
        )
    return memory_store


@pytest.fixture
def clean_services(monkeypatch, tmp_path):
    """Fresh settings and service singletons backed by an in-memory store."""
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    reset_services()
    yield
    reset_services()
    get_settings.cache_clear()
