"""Tests for procsup.supervisor._registry module."""

import pytest

from procsup.exceptions import DuplicateJobError
from procsup.supervisor import JobRegistry, JobSpec, ProcessTable, WorkerHandle


def handle(pid: int, job_name: str = "web") -> WorkerHandle:
    return WorkerHandle(pid=pid, job_name=job_name, started_at="2025-01-01T00:00:00Z")


class TestJobRegistry:
    def test_empty(self) -> None:
        registry = JobRegistry()
        assert len(registry) == 0
        assert registry.get("web") is None

    def test_preserves_order(self) -> None:
        jobs = [JobSpec(name="b", command="x"), JobSpec(name="a", command="y")]
        registry = JobRegistry(jobs)
        assert list(registry) == jobs

    def test_lookup_by_name(self) -> None:
        web = JobSpec(name="web", command="./serve", replicas=2)
        registry = JobRegistry([JobSpec(name="cron", command="./tick"), web])
        assert registry.get("web") is web

    def test_rejects_duplicates(self) -> None:
        with pytest.raises(DuplicateJobError, match="'job'") as exc_info:
            _ = JobRegistry([JobSpec(command="a"), JobSpec(command="b")])

        assert exc_info.value.job_name == "job"

    def test_duplicate_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="more than once"):
            _ = JobRegistry([JobSpec(name="x"), JobSpec(name="x")])


class TestProcessTable:
    def test_add_and_contains(self) -> None:
        table = ProcessTable()
        table.add(handle(10))

        assert 10 in table
        assert 11 not in table
        assert len(table) == 1

    def test_remove_returns_handle(self) -> None:
        table = ProcessTable()
        first = handle(10)
        table.add(first)

        assert table.remove(10) is first
        assert len(table) == 0

    def test_remove_unknown_pid(self) -> None:
        table = ProcessTable()
        table.add(handle(10))

        assert table.remove(99) is None
        assert table.pids() == [10]

    def test_remove_keeps_others(self) -> None:
        table = ProcessTable()
        for pid in (1, 2, 3, 4):
            table.add(handle(pid))

        _ = table.remove(2)

        assert table.pids() == [1, 3, 4]

    def test_count_by_job(self) -> None:
        table = ProcessTable()
        table.add(handle(1, "web"))
        table.add(handle(2, "cron"))
        table.add(handle(3, "web"))

        assert table.count("web") == 2
        assert table.count("cron") == 1
        assert table.count("missing") == 0
