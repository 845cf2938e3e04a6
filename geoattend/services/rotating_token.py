"""
Rotating token service for the QR payload shown on the clock page
"""
import asyncio
import contextlib
import math
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import jwt
from atams.exceptions import BadRequestException
from atams.logging import get_logger

from geoattend.schemas.token import RotatingTokenValue

logger = get_logger(__name__)

ISSUER = "geoattend"
REQUIRED_CLAIMS = ["iss", "sub", "slot", "nonce", "iat", "exp"]


@dataclass
class _WindowNonce:
    window_id: int
    nonce: str
    last_seen: int


class RotatingToken:
    """
    Per-user token that changes every window

    The nonce for a user is drawn once per window and held until rollover, so
    repeated reads inside a window yield the same payload. A new window always
    gets a nonce different from the previous one.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        window_seconds: int = 30,
        grace_windows: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.secret = secret
        self.algorithm = algorithm
        self.window_seconds = window_seconds
        self.grace_windows = grace_windows
        self.clock = clock
        self._nonces: Dict[int, _WindowNonce] = {}
        self._lock = threading.Lock()

    def window_id(self, now: Optional[float] = None) -> int:
        if now is None:
            now = self.clock()
        return int(now // self.window_seconds)

    def seconds_until_rollover(self) -> float:
        now = self.clock()
        return self.window_seconds - (now % self.window_seconds)

    def current_value(self, user_id: int) -> RotatingTokenValue:
        """
        Token for the user's current window

        Returns:
            RotatingTokenValue: {payload: str, window_id: int, expires_in: int}
        """
        now = self.clock()
        window_id = self.window_id(now)
        nonce = self._nonce_for(user_id, window_id)

        window_start = window_id * self.window_seconds
        window_end = window_start + self.window_seconds
        claims = {
            "iss": ISSUER,
            "sub": str(user_id),
            "slot": window_id,
            "nonce": nonce,
            "iat": window_start,
            "exp": window_end + self.grace_windows * self.window_seconds,
        }
        payload = jwt.encode(claims, self.secret, algorithm=self.algorithm)

        return RotatingTokenValue(
            payload=payload,
            window_id=window_id,
            expires_in=max(1, math.ceil(window_end - now)),
        )

    def rotate(self) -> int:
        """
        Advance every tracked user to the current window

        Users not seen for longer than the grace period are forgotten.
        Returns the number of nonces regenerated.
        """
        window_id = self.window_id()
        rotated = 0
        with self._lock:
            for user_id in list(self._nonces):
                entry = self._nonces[user_id]
                if window_id - entry.last_seen > self.grace_windows:
                    del self._nonces[user_id]
                    continue
                if entry.window_id != window_id:
                    entry.nonce = self._fresh_nonce(entry.nonce)
                    entry.window_id = window_id
                    rotated += 1
        if rotated:
            logger.debug(f"Rotated {rotated} token nonces for window {window_id}")
        return rotated

    def verify(self, token: str, user_id: int) -> Dict[str, Any]:
        """
        Verify a token scanned or echoed back by the client

        Raises:
            BadRequestException: If token is invalid, foreign or too old
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                # Expiry is checked against the window below
                options={"verify_exp": False, "verify_iat": False}
            )
        except jwt.InvalidTokenError as e:
            raise BadRequestException(f"Invalid token: {str(e)}")

        for field in REQUIRED_CLAIMS:
            if field not in payload:
                raise BadRequestException(f"Missing required field: {field}")

        if payload["iss"] != ISSUER:
            raise BadRequestException("Invalid token issuer")

        if payload["sub"] != str(user_id):
            raise BadRequestException("Token was issued to another user")

        age = self.window_id() - int(payload["slot"])
        if age < 0 or age > self.grace_windows:
            raise BadRequestException("Token expired")

        return payload

    def _nonce_for(self, user_id: int, window_id: int) -> str:
        with self._lock:
            entry = self._nonces.get(user_id)
            if entry is None:
                entry = _WindowNonce(window_id, self._fresh_nonce(None), window_id)
                self._nonces[user_id] = entry
            elif entry.window_id != window_id:
                entry.nonce = self._fresh_nonce(entry.nonce)
                entry.window_id = window_id
            entry.last_seen = window_id
            return entry.nonce

    @staticmethod
    def _fresh_nonce(previous: Optional[str]) -> str:
        nonce = secrets.token_urlsafe(12)
        while nonce == previous:
            nonce = secrets.token_urlsafe(12)
        return nonce


class RotatingTokenRefresher:
    """Background task that rotates nonces on every window boundary"""

    def __init__(self, token: RotatingToken) -> None:
        self.token = token
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Rotating token refresher started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Rotating token refresher stopped")

    async def _run(self) -> None:
        while True:
            # Land just past the boundary so window_id() already reports the new window
            await asyncio.sleep(self.token.seconds_until_rollover() + 0.01)
            self.token.rotate()
