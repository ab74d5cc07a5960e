from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Protocol

from recap_agent.config.load_config import RecapConfig
from recap_agent.storage.event_log import EventLog
from recap_agent.utils.cancel import CancellationToken


class ToolInvoker(Protocol):
    def invoke(self, tool_name: str, args: dict[str, Any]) -> Any: ...


@dataclass
class AgentContext:
    config: RecapConfig
    tools: ToolInvoker | None
    events: EventLog
    cancel: CancellationToken
    run_id: str

    def trace(self, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append_event(self.run_id, event_type, payload)

    def add_step(self, kind: str, content: str, **fields: Any) -> None:
        """Record one human-readable step; extra fields ride along in the payload."""
        self.trace(kind, {"ts": time.time(), "content": content, **fields})
