"""
Persistence for the workspace state.

The service code works on WorkspaceState values and hands complete new
states to a store; stores never expose partial mutation.
"""

import os
import json
import logging
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Optional

from config import settings
from models.schemas import WorkspaceState
from service.defaults import default_state, default_time_slots
from service.validation import migrate_state

logger = logging.getLogger(__name__)


class ScheduleStore:
    """Base class for workspace stores."""

    def load(self) -> WorkspaceState:
        raise NotImplementedError

    def save(self, state: WorkspaceState) -> None:
        raise NotImplementedError


class InMemoryStore(ScheduleStore):
    """Keeps the state in process memory; used for tests and ephemeral runs."""

    def __init__(self, state: Optional[WorkspaceState] = None):
        self._state = (state or default_state()).model_copy(deep=True)

    def load(self) -> WorkspaceState:
        return self._state.model_copy(deep=True)

    def save(self, state: WorkspaceState) -> None:
        self._state = state.model_copy(deep=True)


class JsonFileStore(ScheduleStore):
    """
    Stores the state as one JSON document with the collections
    "teachers", "courses", "schedule" and "timeSlots".
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> WorkspaceState:
        if not self.path.exists():
            logger.info(f"No state file at {self.path}, starting from defaults")
            return default_state()

        with self.path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)

        state = WorkspaceState.model_validate(migrate_state(raw))
        if not state.time_slots:
            state.time_slots = default_time_slots()
        return state

    def save(self, state: WorkspaceState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = state.model_dump(mode="json", by_alias=True)

        # Write a sibling temp file, then swap it in
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            os.unlink(tmp_path)
            raise


@lru_cache()
def get_store() -> ScheduleStore:
    """Store dependency for the routers, built once from settings."""
    if settings.store_backend == "memory":
        return InMemoryStore()
    if settings.store_backend == "json":
        return JsonFileStore(settings.data_file)
    raise ValueError(f"Unknown store backend: {settings.store_backend}")
