"""Request lifecycle for "where am I" and the display state it drives."""

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional, Union

from app.errors import FixUnavailable, PermissionDenied
from app.location.provider import (
    LOCATION_FIX_TIMEOUT_S,
    LocationProvider,
    ensure_permission,
    first_fix,
)
from app.logging_config import logger
from app.models.coordinate import Coordinate
from app.models.report import (
    LOCATING_TEXT,
    LOCATION_UNAVAILABLE_TEXT,
    PERMISSION_DENIED_TEXT,
    DisplayState,
    LocationReport,
    RequestPhase,
)
from app.report.builder import direction_text, error_text, location_text


@dataclass(frozen=True)
class RequestStarted:
    pass


@dataclass(frozen=True)
class PermissionResolved:
    granted: bool


@dataclass(frozen=True)
class FixReceived:
    fix: Coordinate


@dataclass(frozen=True)
class FixFailed:
    reason: str


@dataclass(frozen=True)
class ReportBuilt:
    report: LocationReport


@dataclass(frozen=True)
class ReportFailed:
    reason: str


@dataclass(frozen=True)
class ReportShown:
    pass


Event = Union[
    RequestStarted,
    PermissionResolved,
    FixReceived,
    FixFailed,
    ReportBuilt,
    ReportFailed,
    ReportShown,
]


def reduce(state: DisplayState, event: Event) -> DisplayState:
    """Compute the next display state. Unknown events leave the state unchanged."""
    if isinstance(event, RequestStarted):
        return state.model_copy(update={"phase": RequestPhase.permission_check})
    if isinstance(event, PermissionResolved):
        if not event.granted:
            return DisplayState(
                phase=RequestPhase.idle, location_text=PERMISSION_DENIED_TEXT
            )
        return DisplayState(phase=RequestPhase.awaiting_fix, location_text=LOCATING_TEXT)
    if isinstance(event, FixReceived):
        return state.model_copy(update={"phase": RequestPhase.building_report})
    if isinstance(event, FixFailed):
        return DisplayState(
            phase=RequestPhase.idle, location_text=LOCATION_UNAVAILABLE_TEXT
        )
    if isinstance(event, ReportBuilt):
        return DisplayState(
            phase=RequestPhase.report_ready,
            location_text=location_text(event.report),
            direction_text=direction_text(event.report),
            report=event.report,
        )
    if isinstance(event, ReportFailed):
        return DisplayState(phase=RequestPhase.idle, location_text=error_text(event.reason))
    if isinstance(event, ReportShown):
        return state.model_copy(update={"phase": RequestPhase.idle})
    return state


class DisplayStore:
    """Single-writer holder of the current DisplayState."""

    def __init__(self, state: Optional[DisplayState] = None):
        self._state = state or DisplayState()
        self._listeners = []

    @property
    def state(self) -> DisplayState:
        return self._state

    def subscribe(self, listener: Callable[[DisplayState], None]):
        self._listeners.append(listener)

    def dispatch(self, event: Event) -> DisplayState:
        self._state = reduce(self._state, event)
        logger.info(
            "DISPLAY_STATE_CHANGED",
            event_type=type(event).__name__,
            phase=self._state.phase.value,
        )
        for listener in self._listeners:
            listener(self._state)
        return self._state


ReportFactory = Callable[[Coordinate], LocationReport]


class WhereAmISession:
    """Runs one user-initiated request cycle at a time.

    The cycle never restarts on its own; a new call to run() is required.
    """

    def __init__(
        self,
        store: DisplayStore,
        build_report: ReportFactory,
        fix_timeout_s: float = LOCATION_FIX_TIMEOUT_S,
    ):
        self.store = store
        self.build_report = build_report
        self.fix_timeout_s = fix_timeout_s
        self._in_flight = asyncio.Lock()

    async def run(
        self, permission_granted: bool, provider: LocationProvider
    ) -> DisplayState:
        """Run PermissionCheck, AwaitingFix and BuildingReport, then return to Idle.

        Args:
            permission_granted: Whether the user granted location access.
            provider: Source of the location fix.

        Returns:
            The state shown to the user at the end of the cycle.
        """
        async with self._in_flight:
            self.store.dispatch(RequestStarted())
            try:
                ensure_permission(permission_granted)
            except PermissionDenied as exc:
                logger.info("LOCATION_PERMISSION_DENIED", error=str(exc))
                return self.store.dispatch(PermissionResolved(granted=False))
            self.store.dispatch(PermissionResolved(granted=True))

            try:
                fix = await first_fix(provider, timeout_s=self.fix_timeout_s)
            except FixUnavailable as exc:
                logger.error("LOCATION_FIX_UNAVAILABLE", error=str(exc))
                return self.store.dispatch(FixFailed(reason=str(exc)))
            self.store.dispatch(FixReceived(fix=fix))

            try:
                report = await asyncio.to_thread(self.build_report, fix)
            except Exception as exc:
                logger.exception("LOCATION_REPORT_FAILED")
                return self.store.dispatch(ReportFailed(reason=str(exc)))
            shown = self.store.dispatch(ReportBuilt(report=report))
            self.store.dispatch(ReportShown())
            return shown
