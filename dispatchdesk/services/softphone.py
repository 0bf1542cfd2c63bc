"""Softphone session adapter around a vendor SIP/WebRTC client.

The vendor client owns signalling. This adapter only tracks the registration
and call states the dispatcher sees, and reports each finished call so it can
be logged. Credentials are passed in as a SoftphoneConfig when the session is
built; nothing is read from global state.
"""
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol
from pydantic import BaseModel
from dispatchdesk.core.config import settings
from dispatchdesk.core.exceptions import SoftphoneConfigError, SoftphoneStateError
from dispatchdesk.schemas.base import CamelModel
from dispatchdesk.schemas.call_log import CallLogCreate
from dispatchdesk.services.calls import log_call
from dispatchdesk.services.phone import digits_only

logger = logging.getLogger(__name__)


class SoftphoneConfig(BaseModel):
    username: str = ""
    password: str = ""
    display_name: str = ""
    auto_record: bool = False
    sip_domain: str = settings.SIP_DOMAIN


class ConnectionState(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    ERROR = "Error"


class CallState(str, Enum):
    IDLE = "Idle"
    CALLING = "Calling"
    RINGING = "Ringing"
    IN_CALL = "In Call"


class FinishedCall(CamelModel):
    phone_number: str
    direction: str
    duration_seconds: int
    answered: bool
    recorded: bool


class SipClient(Protocol):
    async def register(self, config: SoftphoneConfig) -> None: ...
    async def unregister(self) -> None: ...
    async def invite(self, destination: str, record: bool) -> Any: ...
    async def answer(self, call: Any) -> None: ...
    async def hangup(self, call: Any) -> None: ...


CallEndedHandler = Callable[[FinishedCall], Awaitable[Any]]


class SoftphoneSession:

    def __init__(
        self,
        client: SipClient,
        config: SoftphoneConfig,
        on_call_ended: Optional[CallEndedHandler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.config = config
        self.on_call_ended = on_call_ended
        self._clock = clock
        self.connection_state = ConnectionState.DISCONNECTED
        self.call_state = CallState.IDLE
        self.last_error: Optional[str] = None
        self._call: Any = None
        self._number: Optional[str] = None
        self._direction = "outbound"
        self._answered_at: Optional[float] = None

    # registration

    async def connect(self) -> None:
        if not self.config.username or not self.config.password:
            raise SoftphoneConfigError("SIP username and password are required")
        self.connection_state = ConnectionState.CONNECTING
        self.last_error = None
        try:
            await self.client.register(self.config)
        except Exception as e:
            self.handle_error(str(e))
            raise

    def handle_registered(self) -> None:
        self.connection_state = ConnectionState.CONNECTED
        logger.info(f"Softphone registered as {self.config.username}@{self.config.sip_domain}")

    def handle_error(self, message: str) -> None:
        self.connection_state = ConnectionState.ERROR
        self.last_error = message
        logger.error(f"Softphone error: {message}")

    async def disconnect(self) -> None:
        if self.call_state != CallState.IDLE:
            await self.hangup()
        await self.client.unregister()
        self.connection_state = ConnectionState.DISCONNECTED

    # calls

    def _require_connected(self) -> None:
        if self.connection_state != ConnectionState.CONNECTED:
            raise SoftphoneStateError(f"Softphone is {self.connection_state.value}, not Connected")

    async def dial(self, number: str) -> None:
        self._require_connected()
        if self.call_state != CallState.IDLE:
            raise SoftphoneStateError(f"Cannot dial while {self.call_state.value}")
        destination = digits_only(number)
        if not destination:
            raise SoftphoneStateError("No number to dial")
        if len(destination) == 10:
            destination = "1" + destination

        self._number = number
        self._direction = "outbound"
        self._answered_at = None
        self.call_state = CallState.CALLING
        self._call = await self.client.invite(f"+{destination}", self.config.auto_record)

    def handle_incoming(self, call: Any, number: str) -> None:
        if self.call_state != CallState.IDLE:
            logger.info(f"Incoming call from {number} while {self.call_state.value}; left to the provider")
            return
        self._call = call
        self._number = number
        self._direction = "inbound"
        self._answered_at = None
        self.call_state = CallState.RINGING

    async def answer(self) -> None:
        if self.call_state != CallState.RINGING:
            raise SoftphoneStateError("No ringing call to answer")
        await self.client.answer(self._call)
        self.handle_answered()

    def handle_answered(self) -> None:
        if self.call_state in (CallState.CALLING, CallState.RINGING):
            self.call_state = CallState.IN_CALL
            self._answered_at = self._clock()

    async def hangup(self) -> None:
        if self.call_state == CallState.IDLE:
            return
        await self.client.hangup(self._call)
        await self.handle_hangup()

    async def handle_hangup(self) -> None:
        if self.call_state == CallState.IDLE:
            return
        answered = self._answered_at is not None
        duration = int(self._clock() - self._answered_at) if answered else 0
        finished = FinishedCall(
            phone_number=self._number or "",
            direction=self._direction,
            duration_seconds=max(duration, 0),
            answered=answered,
            recorded=answered and self.config.auto_record,
        )
        self.call_state = CallState.IDLE
        self._call = None
        self._number = None
        self._answered_at = None

        if self.on_call_ended is not None:
            await self.on_call_ended(finished)


def softphone_config_from_settings() -> SoftphoneConfig:
    return SoftphoneConfig(
        username=settings.SIP_USERNAME,
        password=settings.SIP_PASSWORD,
        display_name=settings.SIP_DISPLAY_NAME,
        auto_record=settings.SIP_AUTO_RECORD,
        sip_domain=settings.SIP_DOMAIN,
    )


def finished_call_entry(call: FinishedCall) -> CallLogCreate:
    return CallLogCreate(
        phone_number=call.phone_number,
        outcome="Completed" if call.answered else "No Answer",
        duration_seconds=call.duration_seconds,
        note=f"Softphone {call.direction} call",
    )


def call_log_handler(session_factory) -> CallEndedHandler:
    """on_call_ended handler that writes each finished call to the call log."""

    async def _log_finished_call(call: FinishedCall):
        async with session_factory() as db:
            return await log_call(db, finished_call_entry(call))

    return _log_finished_call


def build_softphone_session(
    client: SipClient,
    session_factory,
    config: Optional[SoftphoneConfig] = None,
) -> SoftphoneSession:
    """Session whose finished calls land in the call log. Config defaults to the SIP_* settings."""
    return SoftphoneSession(
        client,
        config or softphone_config_from_settings(),
        on_call_ended=call_log_handler(session_factory),
    )
