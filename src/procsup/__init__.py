"""procsup: a signal-driven supervisor for replicated shell jobs."""

from procsup.config import SupervisorConfig, load_config
from procsup.supervisor import JobSpec, Supervisor

__all__ = ["JobSpec", "Supervisor", "SupervisorConfig", "load_config"]
