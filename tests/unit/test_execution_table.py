"""Tests for the bounded table of live execution records."""

import pytest

from stepweaver.execution_table import ExecutionTable
from stepweaver.models import ExecutionRecord


def _record(status="completed"):
    return ExecutionRecord(agent_id="agent", status=status)


def test_evicts_least_recently_used_finished_records():
    table = ExecutionTable(max_entries=2)
    first, second, third = _record(), _record(), _record()
    table.add(first)
    table.add(second)
    assert table.get(first.id) is first  # first is now most recent
    table.add(third)

    assert second.id not in table
    assert table.ids() == [first.id, third.id]


def test_running_records_are_never_evicted():
    table = ExecutionTable(max_entries=1)
    running = [_record("running") for _ in range(3)]
    for record in running:
        table.add(record)
    assert len(table) == 3

    running[0].status = "completed"
    table.touch(running[1].id)
    assert running[0].id not in table
    assert len(table) == 2


def test_unknown_id_returns_none():
    assert ExecutionTable().get("missing") is None


def test_invalid_bound():
    with pytest.raises(ValueError):
        ExecutionTable(max_entries=0)
