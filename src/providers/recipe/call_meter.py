"""Context-local counter of external HTTP calls.

The aggregation service opens an :class:`ExternalCallMeter` around every
provider invocation; provider HTTP helpers call :func:`record_external_call`
once per request they actually send.  Cache hits never reach the helpers, so
a query served entirely from cache leaves the meter at zero and costs no
quota.

The meter lives in a :class:`contextvars.ContextVar`.  Tasks spawned inside
the block (``asyncio.wait_for``, ``asyncio.gather``) copy the context and so
share the same meter object.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from types import TracebackType

_CURRENT_METER: ContextVar["ExternalCallMeter | None"] = ContextVar(
    "external_call_meter", default=None
)


class ExternalCallMeter:
    """Counts external calls made while the meter is active."""

    def __init__(self) -> None:
        self._count = 0
        self._token: Token[ExternalCallMeter | None] | None = None

    @property
    def count(self) -> int:
        return self._count

    def record(self, calls: int = 1) -> None:
        self._count += calls

    def __enter__(self) -> ExternalCallMeter:
        self._token = _CURRENT_METER.set(self)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _CURRENT_METER.reset(self._token)
            self._token = None


def current_meter() -> ExternalCallMeter | None:
    """Return the meter active in this context, if any."""
    return _CURRENT_METER.get()


def record_external_call(calls: int = 1) -> None:
    """Charge *calls* to the active meter; a no-op when none is active."""
    meter = _CURRENT_METER.get()
    if meter is not None:
        meter.record(calls)
