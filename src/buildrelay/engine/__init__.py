"""Build orchestration engine: parameters, trigger, queue watcher, build monitor."""

from buildrelay.engine.build_monitor import BuildMonitor, BuildState, BuildWatch
from buildrelay.engine.orchestrator import BuildOrchestrator
from buildrelay.engine.parameters import ParameterResolver
from buildrelay.engine.polling import PollPolicy, poll_until
from buildrelay.engine.queue_watcher import QueueState, QueueWatch, QueueWatcher
from buildrelay.engine.trigger import BuildTrigger

__all__ = [
    "BuildMonitor",
    "BuildOrchestrator",
    "BuildState",
    "BuildTrigger",
    "BuildWatch",
    "ParameterResolver",
    "PollPolicy",
    "QueueState",
    "QueueWatch",
    "QueueWatcher",
    "poll_until",
]
