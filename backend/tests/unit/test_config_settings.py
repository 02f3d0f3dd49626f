"""Unit tests for application settings configuration."""

from pathlib import Path

from citelens.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_default_chunking_and_cache_settings(monkeypatch):
    for var in ("CHUNK_SIZE", "CHUNK_OVERLAP", "EMBEDDING_CACHE_TTL_SECONDS", "EMBEDDING_DIMENSIONS"):
        monkeypatch.delenv(var, raising=False)

    settings = Settings(_env_file=None)

    assert settings.chunk_size == 512
    assert settings.chunk_overlap == 128
    assert settings.embedding_cache_ttl_seconds == 3600
    assert settings.embedding_dimensions == 1536
    assert settings.analysis_top_k == 20
    assert settings.prediction_top_k == 10


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("CHUNK_SIZE", "256")
    monkeypatch.setenv("VECTOR_INDEX_BACKEND", "pgvector")

    settings = Settings(_env_file=None)

    assert settings.chunk_size == 256
    assert settings.vector_index_backend == "pgvector"
