"""
Attendance Service - Main business logic for attendance operations
"""
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from geoattend.core.config import settings
from geoattend.core.errors import (
    AttendanceErrorKind,
    AttendanceStoreError,
    LocationError,
    to_app_exception,
)
from geoattend.repositories.attendance_record_repository import AttendanceRecordRepository
from geoattend.schemas.attendance import (
    AttendanceRecord,
    ClockAction,
    ClockRequest,
    ClockResponse,
    TodayResponse,
)
from geoattend.schemas.compliance import ComplianceResponse, LocationReport
from geoattend.schemas.geo import ResolveOptions
from geoattend.schemas.network import AllowedNetwork
from geoattend.schemas.token import RotatingTokenValue
from geoattend.schemas.zone import AllowedZone
from geoattend.services.address_service import AddressResolver
from geoattend.services.attendance_store import SqlAttendanceRecordStore, attendance_day
from geoattend.services.camera import UploadedPhotoCamera
from geoattend.services.capture_state_machine import (
    CaptureState,
    CaptureStateMachine,
    Failed,
    Notice,
    Succeeded,
)
from geoattend.services.compliance_evaluator import ComplianceEvaluator
from geoattend.services.device_identity import fingerprint, with_user_agent
from geoattend.services.location_resolver import (
    HttpIpLocator,
    LocationResolver,
    ReportedGeolocation,
    ReportedNetworkIdentity,
)
from geoattend.services.network_service import NetworkService
from geoattend.services.rotating_token import RotatingToken, RotatingTokenRefresher
from geoattend.services.zone_service import ZoneService
from atams.exceptions import InternalServerException
from atams.logging import get_logger

logger = get_logger(__name__)


class AttendanceService:
    def __init__(self) -> None:
        self.record_repo = AttendanceRecordRepository()
        self.zone_service = ZoneService()
        self.network_service = NetworkService()
        self.evaluator = ComplianceEvaluator()
        self.address_resolver = AddressResolver()
        self.rotating_token = RotatingToken(
            secret=settings.TOKEN_JWT_SECRET,
            algorithm=settings.TOKEN_JWT_ALG,
            window_seconds=settings.TOKEN_WINDOW_SECONDS,
            grace_windows=settings.TOKEN_GRACE_WINDOWS,
        )
        self.token_refresher = RotatingTokenRefresher(self.rotating_token)

    def get_rotating_token(self, user_id: int) -> RotatingTokenValue:
        """Current QR payload for the user, stable within the window"""
        return self.rotating_token.current_value(user_id)

    def today(self) -> date:
        return attendance_day(datetime.now(timezone.utc), settings.ATTENDANCE_TIMEZONE)

    def load_places(self, db: Session) -> Tuple[List[AllowedZone], List[AllowedNetwork]]:
        """Active zones and networks; raises AttendanceStoreError on database failure"""
        try:
            return self.zone_service.active_zones(db), self.network_service.active_networks(db)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to load authorized places: {e}")
            raise AttendanceStoreError("Authorized places could not be loaded") from e

    def resolve_options(self) -> ResolveOptions:
        return ResolveOptions(
            use_gps=settings.LOCATION_USE_GPS,
            use_network=settings.LOCATION_USE_NETWORK,
            use_ip=settings.LOCATION_USE_IP,
            timeout_ms=settings.LOCATION_TIMEOUT_MS,
        )

    def build_resolver(self, report: LocationReport, client_ip: Optional[str]) -> LocationResolver:
        """Location sources fed by what the client reported for this request"""
        return LocationResolver(
            geolocation=ReportedGeolocation(report.position, report.position_error),
            network=ReportedNetworkIdentity(report.network),
            ip_locator=HttpIpLocator(
                settings.IP_GEOLOCATION_URL,
                ip=client_ip,
                accuracy_m=settings.IP_GEOLOCATION_ACCURACY_M,
            ),
        )

    async def check_compliance(
        self,
        db: Session,
        report: LocationReport,
        client_ip: Optional[str] = None
    ) -> ComplianceResponse:
        """
        Preliminary compliance check for the clock page

        Without a position fix the check still passes on an authorized network.

        Raises:
            BadRequestException: If no position could be resolved and the
                network is not authorized
            ServiceUnavailableException: If zones or networks could not be loaded
        """
        resolver = self.build_resolver(report, client_ip)
        location_error: Optional[LocationError] = None
        try:
            reading = await resolver.resolve(self.resolve_options())
        except LocationError as e:
            reading, location_error = None, e

        try:
            zones, networks = self.load_places(db)
        except AttendanceStoreError as e:
            raise to_app_exception(AttendanceErrorKind.PERSISTENCE_FAILURE, str(e))
        network = await resolver.read_network()
        result = self.evaluator.evaluate(reading, zones, network, networks)
        if location_error is not None and result.method != "network":
            raise to_app_exception(location_error.kind, location_error.message)
        return ComplianceResponse(reading=reading, result=result)

    async def clock(
        self,
        db: Session,
        user_id: int,
        action: ClockAction,
        request: ClockRequest,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> ClockResponse:
        """
        Run the full capture flow for one clock-in or clock-out

        Returns:
            ClockResponse: success, or informational when today's record
            already rules the action out

        Raises:
            BadRequestException: Location, camera or token problems
            ForbiddenException: Not at an authorized location
            ServiceUnavailableException: Record could not be saved
        """
        token_value = self._token_for(user_id, request.token)

        async def places():
            return self.load_places(db)

        machine = CaptureStateMachine(
            user_id=user_id,
            resolver=self.build_resolver(request, client_ip),
            camera=UploadedPhotoCamera(request.photo_base64, settings.MAX_PHOTO_BYTES),
            store=SqlAttendanceRecordStore(db),
            places=places,
            token_value=lambda: token_value,
            device_fingerprint=fingerprint(with_user_agent(request.device, user_agent)),
            evaluator=self.evaluator,
            address_resolver=self.address_resolver,
            resolve_options=self.resolve_options(),
            max_age_seconds=settings.POSITION_MAX_AGE_SECONDS,
            today=self.today,
        )

        state = await machine.begin(action)
        if state.state == "capturing_photo":
            state = await machine.capture_photo()
        if state.state == "confirming":
            state = await machine.confirm()

        return self._to_response(state)

    def get_today(self, db: Session, user_id: int) -> TodayResponse:
        """Today's record and the next action the user may take"""
        today = self.today()
        obj = self.record_repo.find_for_day(db, user_id, today)
        if not obj:
            return TodayResponse(date=today, next_action=ClockAction.CLOCK_IN)

        record = AttendanceRecord.from_model(obj)
        next_action = ClockAction.CLOCK_OUT if record.clock_out is None else None
        return TodayResponse(date=today, record=record, next_action=next_action)

    def list_records(
        self,
        db: Session,
        user_id: int = None,
        date_from: date = None,
        date_to: date = None,
        status: str = None,
        skip: int = 0,
        limit: int = 100,
        sort: str = "desc"
    ) -> List[AttendanceRecord]:
        records = self.record_repo.get_records_with_filters(
            db, user_id=user_id, date_from=date_from, date_to=date_to,
            status=status, skip=skip, limit=limit, sort=sort
        )
        return [AttendanceRecord.from_model(r) for r in records]

    def count_records(
        self,
        db: Session,
        user_id: int = None,
        date_from: date = None,
        date_to: date = None,
        status: str = None
    ) -> int:
        return self.record_repo.count_records_with_filters(
            db, user_id=user_id, date_from=date_from, date_to=date_to, status=status
        )

    def _token_for(self, user_id: int, token: Optional[str]) -> str:
        """Echoed token must verify; otherwise tag with the current one"""
        if token:
            self.rotating_token.verify(token, user_id)
            return token
        return self.rotating_token.current_value(user_id).payload

    def _to_response(self, state: CaptureState) -> ClockResponse:
        if isinstance(state, Succeeded):
            event = state.record.clock_in if state.action == ClockAction.CLOCK_IN else state.record.clock_out
            local_time = event.time.astimezone(ZoneInfo(settings.ATTENDANCE_TIMEZONE))
            verb = "Clocked in" if state.action == ClockAction.CLOCK_IN else "Clocked out"
            return ClockResponse(
                outcome="success",
                action=state.action,
                message=f"{verb} at {local_time.strftime('%H:%M')}",
                record=state.record,
                compliance=state.compliance,
            )

        if isinstance(state, Notice):
            return ClockResponse(
                outcome="informational",
                action=state.action,
                kind=state.kind.value,
                message=state.message,
                record=state.record,
            )

        if isinstance(state, Failed):
            details = state.compliance.diagnostics() if state.compliance else None
            raise to_app_exception(state.kind, state.message, details)

        logger.error(f"Capture flow stopped in unexpected state {state.state}")
        raise InternalServerException("Attendance capture did not complete")
