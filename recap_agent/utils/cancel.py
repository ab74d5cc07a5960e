from __future__ import annotations


class CancellationToken:
    """Cooperative stop flag.

    The engine checks it once per loop pass; a set token stops further
    iterations and the run ends as a partial result instead of raising.
    """

    def __init__(self) -> None:
        self._cancel_requested = False
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    @property
    def reason(self) -> str:
        return self._reason

    def request_cancel(self, reason: str = "") -> None:
        self._cancel_requested = True
        self._reason = (reason or "").strip()
