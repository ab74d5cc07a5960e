from .agents.orchestrator import ReCapAgent
from .recap.engine import RecapError, RecapOutcome

__all__ = ["ReCapAgent", "RecapError", "RecapOutcome"]
