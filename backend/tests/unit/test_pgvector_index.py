"""Unit tests for PgVectorIndex with a recording session factory."""

from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from citelens.domain.exceptions import IndexUnavailableError
from citelens.infrastructure.vector_index.pgvector_index import PgVectorIndex


class FakeResult:
    def __init__(self, rows):
        self._rows = rows
        self.rowcount = len(rows)

    def all(self):
        return list(self._rows)


class FakeSession:
    def __init__(self, owner):
        self._owner = owner

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, stmt):
        self._owner.statements.append(stmt)
        if self._owner.error is not None:
            raise self._owner.error
        return FakeResult(self._owner.rows)

    async def commit(self):
        self._owner.commits += 1


class FakeSessionFactory:
    def __init__(self, rows=None, error: Exception | None = None):
        self.rows = rows or []
        self.error = error
        self.statements: list = []
        self.commits = 0

    def __call__(self):
        return FakeSession(self)


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.mark.asyncio
async def test_query_maps_rows_to_matches():
    factory = FakeSessionFactory(rows=[
        SimpleNamespace(id="a", similarity=0.9, entry_metadata={"citation_id": 1}),
        SimpleNamespace(id="b", similarity=-0.2, entry_metadata=None),
    ])

    matches = await PgVectorIndex(factory).query([0.1, 0.2, 0.3], top_k=5)

    assert [(m.id, m.score, m.metadata) for m in matches] == [
        ("a", 0.9, {"citation_id": 1}),
        ("b", -0.2, {}),
    ]


@pytest.mark.asyncio
async def test_query_orders_by_cosine_distance_and_limits():
    factory = FakeSessionFactory()

    await PgVectorIndex(factory).query([0.1, 0.2, 0.3], top_k=7)

    compiled = factory.statements[0].compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert "<=>" in sql
    assert "ORDER BY" in sql
    assert "LIMIT" in sql
    assert 7 in compiled.params.values()
    assert "@>" not in sql


@pytest.mark.asyncio
async def test_query_filter_uses_jsonb_containment():
    factory = FakeSessionFactory()

    await PgVectorIndex(factory).query([0.1, 0.2, 0.3], top_k=3, filter={"has_citation": True})

    assert "@>" in _sql(factory.statements[0])


@pytest.mark.asyncio
async def test_non_positive_top_k_skips_the_database():
    factory = FakeSessionFactory()

    assert await PgVectorIndex(factory).query([0.1], top_k=0) == []
    assert factory.statements == []


@pytest.mark.asyncio
async def test_upsert_replaces_vector_and_metadata_on_conflict():
    factory = FakeSessionFactory()

    await PgVectorIndex(factory).upsert("fp1", [0.1, 0.2, 0.3], {"content": "x"})

    sql = _sql(factory.statements[0])
    assignments = sql.partition("DO UPDATE SET")[2]
    assert "ON CONFLICT (id)" in sql
    assert "embedding" in assignments
    assert "metadata" in assignments
    assert factory.commits == 1


@pytest.mark.asyncio
async def test_database_errors_raise_index_unavailable():
    factory = FakeSessionFactory(error=OperationalError("SELECT 1", {}, Exception("connection refused")))
    index = PgVectorIndex(factory)

    with pytest.raises(IndexUnavailableError) as exc_info:
        await index.query([0.1, 0.2, 0.3])
    assert exc_info.value.operation == "query"

    with pytest.raises(IndexUnavailableError):
        await index.upsert("fp", [0.1, 0.2, 0.3], {})

    with pytest.raises(IndexUnavailableError):
        await index.delete_by_ids(["fp"])


@pytest.mark.asyncio
async def test_delete_with_no_ids_is_a_noop():
    factory = FakeSessionFactory()

    await PgVectorIndex(factory).delete_by_ids([])

    assert factory.statements == []
