"""
Capture State Machine - locate, photograph, confirm and persist one clock event

The machine is transport independent. It owns the transition rules and the
translation of raw failures into AttendanceErrorKind; the location sources,
camera, record store and authorized places are passed in.

    idle -> locating -> capturing_photo -> confirming -> succeeded
                 \\              \\              \\-> failed (retry -> confirming)
                  \\-> failed     \\-> failed
    idle -> notice   (precondition outcome, before any location work)
    any  -> idle     (cancel)
"""
import asyncio
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict
from atams.logging import get_logger

from geoattend.core.errors import (
    AttendanceErrorKind,
    AttendanceStoreError,
    CameraUnavailable,
    ClockOutConflictError,
    DuplicateAttendanceError,
    LocationError,
    remediation_for,
)
from geoattend.schemas.attendance import AttendanceRecord, ClockAction, ClockCapture
from geoattend.schemas.compliance import ComplianceResult
from geoattend.schemas.geo import PositionReading, ResolveOptions
from geoattend.schemas.network import AllowedNetwork
from geoattend.schemas.zone import AllowedZone
from geoattend.services.attendance_store import AttendanceRecordStore
from geoattend.services.camera import FRONT_CAMERA, CameraCapability
from geoattend.services.compliance_evaluator import ComplianceEvaluator
from geoattend.services.location_resolver import LocationResolver

logger = get_logger(__name__)

# Raises AttendanceStoreError when the places cannot be loaded
PlacesProvider = Callable[[], Awaitable[Tuple[List[AllowedZone], List[AllowedNetwork]]]]


class InvalidTransitionError(Exception):
    """Operation not allowed in the current state"""


class _State(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Idle(_State):
    state: Literal["idle"] = "idle"


class Locating(_State):
    state: Literal["locating"] = "locating"
    action: ClockAction


class CapturingPhoto(_State):
    state: Literal["capturing_photo"] = "capturing_photo"
    action: ClockAction
    # None when an authorized network stands in for a position fix
    reading: Optional[PositionReading] = None
    compliance: ComplianceResult
    stream: Any


class Confirming(_State):
    state: Literal["confirming"] = "confirming"
    action: ClockAction
    reading: Optional[PositionReading] = None
    photo: bytes
    compliance: Optional[ComplianceResult] = None


class Succeeded(_State):
    state: Literal["succeeded"] = "succeeded"
    action: ClockAction
    record: AttendanceRecord
    compliance: ComplianceResult


class Failed(_State):
    state: Literal["failed"] = "failed"
    action: ClockAction
    kind: AttendanceErrorKind
    message: str
    remediation: str
    compliance: Optional[ComplianceResult] = None
    # Capture kept for retry() without taking a new photo
    retained: Optional[Confirming] = None


class Notice(_State):
    """Informational outcome, normal usage rather than a malfunction"""
    state: Literal["notice"] = "notice"
    action: ClockAction
    kind: AttendanceErrorKind
    message: str
    record: Optional[AttendanceRecord] = None


CaptureState = Union[Idle, Locating, CapturingPhoto, Confirming, Succeeded, Failed, Notice]

ALLOWED_TRANSITIONS = {
    "begin": {"idle"},
    "capture_photo": {"capturing_photo"},
    "confirm": {"confirming"},
    "discard": {"confirming"},
    "retry": {"failed"},
    "reset": {"succeeded", "failed", "notice"},
}


def precondition_notice(action: ClockAction, record: Optional[AttendanceRecord]) -> Optional[AttendanceErrorKind]:
    """Re-entrancy rule for today's record, None when the action may proceed"""
    if action == ClockAction.CLOCK_IN:
        if record is not None:
            return AttendanceErrorKind.ALREADY_CLOCKED_IN
        return None
    if record is None:
        return AttendanceErrorKind.NOT_YET_CLOCKED_IN
    if record.clock_out is not None:
        return AttendanceErrorKind.ALREADY_CLOCKED_OUT
    return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaptureStateMachine:
    def __init__(
        self,
        user_id: int,
        resolver: LocationResolver,
        camera: CameraCapability,
        store: AttendanceRecordStore,
        places: PlacesProvider,
        token_value: Callable[[], str],
        device_fingerprint: str,
        evaluator: Optional[ComplianceEvaluator] = None,
        address_resolver=None,
        resolve_options: Optional[ResolveOptions] = None,
        max_age_seconds: float = 60,
        today: Optional[Callable[[], date]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.user_id = user_id
        self.resolver = resolver
        self.camera = camera
        self.store = store
        self.places = places
        self.token_value = token_value
        self.device_fingerprint = device_fingerprint
        self.evaluator = evaluator or ComplianceEvaluator()
        self.address_resolver = address_resolver
        self.resolve_options = resolve_options or ResolveOptions()
        self.max_age_seconds = max_age_seconds
        self.clock = clock
        self.today = today or (lambda: self.clock().date())

        self._state: CaptureState = Idle()
        self._stream = None
        self._pending: Optional[asyncio.Future] = None
        self._generation = 0
        self._busy = False

    @property
    def state(self) -> CaptureState:
        return self._state

    # ==================== TRANSITIONS ====================

    async def begin(self, action: ClockAction) -> CaptureState:
        """Check today's record, resolve a position and open the front camera"""
        self._require("begin")
        generation = self._generation
        self._busy = True
        try:
            try:
                existing = await self._suspend(self.store.find_for_day(self.user_id, self.today()))
            except AttendanceStoreError as e:
                return self._fail(action, AttendanceErrorKind.PERSISTENCE_FAILURE, str(e))
            if self._superseded(generation):
                return self._state

            kind = precondition_notice(action, existing)
            if kind is not None:
                return self._notice(action, kind, existing)

            self._set(Locating(action=action))
            location_error: Optional[LocationError] = None
            try:
                reading = await self._suspend(self.resolver.resolve(self.resolve_options))
            except LocationError as e:
                reading, location_error = None, e
            if self._superseded(generation):
                return self._state

            # Preliminary only: drives "N meters away" feedback, not the decision
            try:
                compliance = await self._evaluate(reading)
            except AttendanceStoreError as e:
                return self._fail(action, AttendanceErrorKind.PERSISTENCE_FAILURE, str(e))
            if self._superseded(generation):
                return self._state
            if location_error is not None:
                if compliance.method != "network":
                    return self._fail(action, location_error.kind, location_error.message)
                logger.info(
                    "No position fix, continuing on an authorized network",
                    extra={"extra_data": {"user_id": self.user_id, "reason": location_error.kind.value}}
                )

            try:
                stream = await self._suspend(self.camera.acquire_stream(FRONT_CAMERA))
            except CameraUnavailable as e:
                return self._fail(action, AttendanceErrorKind.CAMERA_UNAVAILABLE, e.message)
            if self._superseded(generation):
                stream.stop()
                return self._state

            self._stream = stream
            return self._set(CapturingPhoto(
                action=action, reading=reading, compliance=compliance, stream=stream
            ))
        except asyncio.CancelledError:
            return self._on_cancelled(generation)
        finally:
            self._busy = False

    async def capture_photo(self) -> CaptureState:
        """Take one still frame and release the camera right away"""
        self._require("capture_photo")
        current: CapturingPhoto = self._state
        generation = self._generation
        self._busy = True
        try:
            try:
                frame = await self._suspend(self.camera.capture_frame(current.stream))
            except CameraUnavailable as e:
                self._release_stream()
                return self._fail(current.action, AttendanceErrorKind.CAMERA_UNAVAILABLE, e.message)
            self._release_stream()
            if self._superseded(generation):
                return self._state
            if not frame:
                return self._fail(
                    current.action, AttendanceErrorKind.CAMERA_UNAVAILABLE, "Camera returned an empty frame"
                )

            return self._set(Confirming(
                action=current.action,
                reading=current.reading,
                photo=frame,
                compliance=current.compliance,
            ))
        except asyncio.CancelledError:
            return self._on_cancelled(generation)
        finally:
            self._busy = False

    async def confirm(self) -> CaptureState:
        """
        Re-validate and persist

        A stale or missing reading is resolved again, zones and networks are
        reloaded and compliance is evaluated again; only a compliant fresh
        reading, or an authorized network when no fix exists, can reach the
        store.
        """
        self._require("confirm")
        current: Confirming = self._state
        action = current.action
        generation = self._generation
        self._busy = True
        try:
            reading = current.reading
            location_error: Optional[LocationError] = None
            if reading is None or reading.age_seconds(self.clock()) > self.max_age_seconds:
                if reading is not None:
                    logger.info(
                        "Reading is stale, resolving again",
                        extra={"extra_data": {"user_id": self.user_id, "source": reading.source}}
                    )
                try:
                    reading = await self._suspend(self.resolver.resolve(self.resolve_options))
                except LocationError as e:
                    reading, location_error = None, e
                if self._superseded(generation):
                    return self._state
                if reading is not None:
                    if reading.age_seconds(self.clock()) > self.max_age_seconds:
                        return self._fail(
                            action,
                            AttendanceErrorKind.LOCATION_UNAVAILABLE,
                            "Only a stale position is available",
                            retained=current,
                        )
                    current = current.model_copy(update={"reading": reading})

            try:
                compliance = await self._evaluate(reading)
            except AttendanceStoreError as e:
                return self._fail(
                    action, AttendanceErrorKind.PERSISTENCE_FAILURE, str(e), retained=current,
                )
            if self._superseded(generation):
                return self._state
            if location_error is not None and compliance.method != "network":
                return self._fail(action, location_error.kind, location_error.message, retained=current)
            if not compliance.is_compliant:
                return self._fail(
                    action,
                    AttendanceErrorKind.NOT_COMPLIANT,
                    compliance.reason or "Not at an authorized location",
                    compliance=compliance,
                    retained=current.model_copy(update={"compliance": compliance}),
                )

            day = self.today()
            try:
                existing = await self._suspend(self.store.find_for_day(self.user_id, day))
            except AttendanceStoreError as e:
                return self._fail(
                    action, AttendanceErrorKind.PERSISTENCE_FAILURE, str(e),
                    compliance=compliance, retained=current,
                )
            if self._superseded(generation):
                return self._state
            kind = precondition_notice(action, existing)
            if kind is not None:
                return self._notice(action, kind, existing)

            address = None
            if self.address_resolver is not None and reading is not None:
                address = await self._suspend(self.address_resolver.lookup(reading.coords))
                if self._superseded(generation):
                    return self._state

            capture = ClockCapture(
                time=self.clock(),
                reading=reading,
                address=address,
                device_fingerprint=self.device_fingerprint,
                photo=current.photo,
                token_value=self.token_value(),
            )
            try:
                if action == ClockAction.CLOCK_IN:
                    record = await self._suspend(self.store.create_clock_in(self.user_id, day, capture))
                else:
                    record = await self._suspend(self.store.record_clock_out(existing.id, capture))
            except DuplicateAttendanceError:
                return self._notice(action, AttendanceErrorKind.ALREADY_CLOCKED_IN)
            except ClockOutConflictError:
                return self._notice(action, AttendanceErrorKind.ALREADY_CLOCKED_OUT)
            except AttendanceStoreError as e:
                return self._fail(
                    action, AttendanceErrorKind.PERSISTENCE_FAILURE, str(e),
                    compliance=compliance, retained=current,
                )
            if self._superseded(generation):
                return self._state

            return self._set(Succeeded(action=action, record=record, compliance=compliance))
        except asyncio.CancelledError:
            return self._on_cancelled(generation)
        finally:
            self._busy = False

    def discard(self) -> CaptureState:
        """Drop the captured photo without persisting"""
        self._require("discard")
        return self._set(Idle())

    def retry(self) -> CaptureState:
        """Back to confirming with the retained capture"""
        self._require("retry")
        if self._state.retained is None:
            raise InvalidTransitionError(f"{self._state.kind.value} cannot be retried, start over")
        return self._set(self._state.retained)

    def reset(self) -> CaptureState:
        self._require("reset")
        return self._set(Idle())

    def cancel(self) -> CaptureState:
        """Abandon the attempt from any state, releasing the camera"""
        self._generation += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._release_stream()
        return self._set(Idle())

    # ==================== INTERNALS ====================

    def _require(self, operation: str) -> None:
        if self._busy:
            raise InvalidTransitionError(f"Cannot {operation} while another step is in progress")
        if self._state.state not in ALLOWED_TRANSITIONS[operation]:
            raise InvalidTransitionError(f"Cannot {operation} from state {self._state.state}")

    async def _suspend(self, awaitable: Awaitable) -> Any:
        pending = asyncio.ensure_future(awaitable)
        self._pending = pending
        try:
            return await pending
        finally:
            if self._pending is pending:
                self._pending = None

    def _superseded(self, generation: int) -> bool:
        return generation != self._generation

    def _on_cancelled(self, generation: int) -> CaptureState:
        if self._superseded(generation):
            # cancel() already moved the machine to idle
            return self._state
        self._release_stream()
        self._set(Idle())
        raise asyncio.CancelledError()

    async def _evaluate(self, reading: Optional[PositionReading]) -> ComplianceResult:
        """Raises AttendanceStoreError when the authorized places cannot be read"""
        zones, networks = await self._suspend(self.places())
        network = await self._suspend(self.resolver.read_network())
        return self.evaluator.evaluate(reading, zones, network, networks)

    def _release_stream(self) -> None:
        if self._stream is not None:
            stream, self._stream = self._stream, None
            stream.stop()

    def _set(self, state: CaptureState) -> CaptureState:
        logger.debug(
            f"Capture state {self._state.state} -> {state.state}",
            extra={"extra_data": {"user_id": self.user_id}}
        )
        self._state = state
        return state

    def _fail(
        self,
        action: ClockAction,
        kind: AttendanceErrorKind,
        message: str,
        compliance: Optional[ComplianceResult] = None,
        retained: Optional[Confirming] = None,
    ) -> CaptureState:
        logger.warning(
            f"Clock attempt failed: {kind.value}",
            extra={"extra_data": {"user_id": self.user_id, "action": action.value, "detail": message}}
        )
        return self._set(Failed(
            action=action,
            kind=kind,
            message=message,
            remediation=remediation_for(kind),
            compliance=compliance,
            retained=retained,
        ))

    def _notice(
        self,
        action: ClockAction,
        kind: AttendanceErrorKind,
        record: Optional[AttendanceRecord] = None,
    ) -> CaptureState:
        return self._set(Notice(action=action, kind=kind, message=remediation_for(kind), record=record))
