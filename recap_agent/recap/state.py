from __future__ import annotations

from enum import Enum


class RecapState(Enum):
    """Loop phase recorded in trace payloads."""

    DOWN = "down"
    ACTION_TAKEN = "action_taken"
    UP = "up"


class TaskType(Enum):
    ATOMIC = "atomic"
    COMPOSITE = "composite"


class TaskStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    # Task description/attributes were changed by the refiner.
    REFINED = "refined"
    SKIPPED = "skipped"
    FAILED = "failed"


class RefineAction(Enum):
    KEEP = "keep"
    MODIFY = "modify"
    SPLIT = "split"
    MERGE = "merge"
    SKIP = "skip"
    ADD = "add"
    REORDER = "reorder"


class RunStatus(Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    CANCELLED = "cancelled"
    NO_RESULT = "no_result"
