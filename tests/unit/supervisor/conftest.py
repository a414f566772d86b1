from collections.abc import Callable

import pytest
from structlog.typing import FilteringBoundLogger

from procsup.supervisor import (
    FakeCommandExecutor,
    FakeProcessOps,
    JobSpec,
    Supervisor,
)

SupervisorFactory = Callable[..., Supervisor]


@pytest.fixture
def ops() -> FakeProcessOps:
    return FakeProcessOps()


@pytest.fixture
def executor() -> FakeCommandExecutor:
    return FakeCommandExecutor()


@pytest.fixture
def make_supervisor(
    ops: FakeProcessOps,
    executor: FakeCommandExecutor,
    logger: FilteringBoundLogger,
) -> SupervisorFactory:
    """Return a factory building a Supervisor wired to the fakes.

    Positional arguments are JobSpecs; keyword arguments override the
    Supervisor's options.
    """

    def _make(*jobs: JobSpec, **overrides: object) -> Supervisor:
        options: dict[str, object] = {
            "ops": ops,
            "executor": executor,
            "logger": logger,
        }
        options.update(overrides)
        return Supervisor(jobs, **options)  # pyright: ignore[reportArgumentType]

    return _make


@pytest.fixture
def web() -> JobSpec:
    return JobSpec(name="web", command="./serve", replicas=3)


@pytest.fixture
def worker() -> JobSpec:
    return JobSpec(name="worker", command="./work", replicas=2)
