from datetime import timedelta

import pytest

import stepweaver.persistence as persistence
from stepweaver.contracts import WorkflowDefinition
from stepweaver.errors import DefinitionNotFound, RecordNotFound
from stepweaver.models import ExecutionRecord, utcnow
from stepweaver.persistence import InMemoryAgentStore, SQLiteAgentStore, get_store


@pytest.fixture(params=["memory", "sqlite"])
def agent_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryAgentStore()
    return SQLiteAgentStore(tmp_path / "agents.db")


def _agent(name="summarizer"):
    return WorkflowDefinition.model_validate(
        {
            "name": name,
            "description": "Summarizes text",
            "tags": ["nlp"],
            "steps": [{"id": "p", "type": "prompt", "config": {"prompt": "Summarize {text}"}}],
        }
    )


@pytest.mark.asyncio
async def test_agent_crud(agent_store):
    agent = _agent()
    await agent_store.save_agent(agent)

    loaded = await agent_store.load_agent(agent.id)
    assert loaded == agent

    summaries = await agent_store.list_agents()
    assert [(s.id, s.name, s.tags) for s in summaries] == [(agent.id, "summarizer", ["nlp"])]

    agent.name = "renamed"
    await agent_store.save_agent(agent)
    assert (await agent_store.load_agent(agent.id)).name == "renamed"
    assert len(await agent_store.list_agents()) == 1

    assert await agent_store.delete_agent(agent.id) is True
    assert await agent_store.delete_agent(agent.id) is False
    with pytest.raises(DefinitionNotFound):
        await agent_store.load_agent(agent.id)


@pytest.mark.asyncio
async def test_execution_upsert_and_listing(agent_store):
    older = ExecutionRecord(agent_id="a1", status="running", start_time=utcnow() - timedelta(minutes=5))
    newer = ExecutionRecord(agent_id="a1", status="running")
    other = ExecutionRecord(agent_id="a2", status="running")
    for record in (older, newer, other):
        await agent_store.save_execution(record)

    older.status = "completed"
    older.outputs = {"summary": "done"}
    older.stamp_end()
    await agent_store.save_execution(older)

    loaded = await agent_store.load_execution(older.id)
    assert loaded.status == "completed"
    assert loaded.outputs == {"summary": "done"}

    listed = await agent_store.list_executions(agent_id="a1")
    assert [s.id for s in listed] == [newer.id, older.id]
    assert len(await agent_store.list_executions()) == 3

    with pytest.raises(RecordNotFound):
        await agent_store.load_execution("missing")


@pytest.mark.asyncio
async def test_cleanup_old_executions(agent_store):
    stale = ExecutionRecord(agent_id="a", status="completed", start_time=utcnow() - timedelta(days=45))
    fresh = ExecutionRecord(agent_id="a", status="completed")
    await agent_store.save_execution(stale)
    await agent_store.save_execution(fresh)

    assert await agent_store.cleanup_old_executions() == 1
    assert [s.id for s in await agent_store.list_executions()] == [fresh.id]
    assert await agent_store.cleanup_old_executions(max_age_days=30) == 0


@pytest.mark.asyncio
async def test_in_memory_store_returns_copies():
    store = InMemoryAgentStore()
    record = ExecutionRecord(agent_id="a", status="running")
    await store.save_execution(record)
    record.status = "failed"
    assert (await store.load_execution(record.id)).status == "running"


@pytest.mark.asyncio
async def test_sqlite_store_survives_reopen(tmp_path):
    path = tmp_path / "agents.db"
    agent = _agent()
    first = SQLiteAgentStore(path)
    await first.save_agent(agent)
    first.close()

    reopened = SQLiteAgentStore(path)
    assert (await reopened.load_agent(agent.id)).name == agent.name


def test_get_store_selects_backend(tmp_path, monkeypatch):
    assert isinstance(get_store(), InMemoryAgentStore)
    assert get_store() is persistence._store_instance

    monkeypatch.setenv("STEPWEAVER_DATABASE_URL", f"sqlite://{tmp_path / 'env.db'}")
    assert isinstance(get_store(database_url=None, config=persistence.load_config()), SQLiteAgentStore)

    with pytest.raises(ValueError, match="Unsupported database backend"):
        get_store("mysql://nope")
