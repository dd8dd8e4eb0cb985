"""
Storage module for flowreplay.

Holds the status of every replay task launched by this process:

    pending -> completed (result = {"successReplay": True})
    pending -> failed    (error = failure message)

The store is created once at process start and injected into the
ReplayEngine; status-polling callers read from the same instance.
"""

from flowreplay.store.memory import TaskStore, generate_task_id

__all__ = [
    "TaskStore",
    "generate_task_id",
]
