"""Unit tests for the ON CONFLICT upserts, compiled with the PostgreSQL dialect."""

from sqlalchemy.dialects import postgresql

from citelens.domain.entities import Analysis, EmbeddingRecord, Recommendation
from citelens.infrastructure.database.repositories.analysis_repository import (
    SQLAlchemyAnalysisRepository,
)
from citelens.infrastructure.database.repositories.embedding_record_repository import (
    PgEmbeddingRecordRepository,
)


def _conflict_clause(stmt) -> tuple[str, str]:
    """Return (conflict target, DO UPDATE SET assignments) of a compiled upsert."""
    sql = str(stmt.compile(dialect=postgresql.dialect()))
    head, _, rest = sql.partition("ON CONFLICT")
    assert rest, sql
    target, _, assignments = rest.partition("DO UPDATE SET")
    assignments, _, _ = assignments.partition("RETURNING")
    return target, assignments


def _assigned_columns(assignments: str) -> set[str]:
    return {part.split("=")[0].strip() for part in assignments.split(",")}


def test_embedding_upsert_never_overwrites_vector():
    record = EmbeddingRecord(
        fingerprint="a" * 64,
        content="some chunk",
        vector=[0.1, 0.2, 0.3],
        metadata={"source_url": "https://a"},
    )

    target, assignments = _conflict_clause(PgEmbeddingRecordRepository.upsert_statement(record))

    assert "content_hash" in target
    assert _assigned_columns(assignments) == {"metadata", "updated_at"}


def test_embedding_upsert_inserts_every_durable_column():
    record = EmbeddingRecord(fingerprint="b" * 64, content="text", vector=[1.0, 0.0, 0.0])

    sql = str(PgEmbeddingRecordRepository.upsert_statement(record).compile(dialect=postgresql.dialect()))
    insert_part = sql.partition("VALUES")[0]

    for column in ("content_hash", "content", "embedding", "metadata"):
        assert column in insert_part


def test_analysis_upsert_overwrites_every_generated_field():
    analysis = Analysis(
        citation_id=42,
        reasoning_hypothesis="Authority.",
        recommendations=[Recommendation(action="Add FAQ")],
    )

    target, assignments = _conflict_clause(SQLAlchemyAnalysisRepository.upsert_statement(analysis))

    assert "citation_id" in target
    assert _assigned_columns(assignments) == {
        "similar_chunks",
        "keyword_matches",
        "reasoning_hypothesis",
        "recommendations",
        "hypothesis_status",
        "recommendations_status",
        "updated_at",
    }
