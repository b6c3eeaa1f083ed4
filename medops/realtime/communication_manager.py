"""
Communication manager for the doctor link.

Reconciles transport connectivity with the doctor's presence into one
effective connection flag, pushes the dashboard each time that flag turns on,
and offers the outbound sends used by the front desk. Sends while not
connected return a failure result; they are never queued or retried.
"""

import asyncio
import base64
import json
from pathlib import Path
from typing import Any

from ..config.models import CommunicationConfig
from ..error_types import ErrorMessages, ErrorType, create_failure_result
from ..exceptions import ErrorContext, handle_exception
from ..schemas.realtime import (
    ClientDescriptor,
    DashboardSnapshot,
    FileDataEnvelope,
    PatientDataEnvelope,
    PresencePayload,
    WaitingPatientsPayload,
)
from ..structured_logging.enhanced_logging_config import get_logger
from .collaborators import ClinicDataSource, Cipher
from .connection_state import ConnectionState, ConnectionTransition
from .dashboard_aggregator import DashboardAggregator, utc_timestamp
from .inbound_handlers import InboundEventRouter, guard_listener
from .socket_transport import (
    EVENT_CLIENT_APP_CONNECT,
    EVENT_CONNECT,
    EVENT_DASHBOARD_STATUS,
    EVENT_DISCONNECT,
    EVENT_DOCTOR_PRESENCE,
    EVENT_FILE_DATA,
    EVENT_MESSAGE,
    EVENT_PATIENT_DATA,
    EVENT_WAITING_PATIENTS,
    ListenerSet,
    TransportSocket,
    emit_event,
)

logger = get_logger(__name__)


class CommunicationManager:
    """
    Owns the listener set on a borrowed transport socket.

    The socket's lifetime belongs to the network layer: attach() and detach()
    only add and remove this manager's listeners.
    """

    def __init__(
        self,
        data_source: ClinicDataSource,
        cipher: Cipher,
        config: CommunicationConfig | None = None,
        aggregator: DashboardAggregator | None = None,
        router: InboundEventRouter | None = None,
    ):
        self.data_source = data_source
        self.cipher = cipher
        self.config = config or CommunicationConfig()
        self.aggregator = aggregator or DashboardAggregator(data_source, cipher)
        self.router = router or InboundEventRouter(data_source, cipher)
        self._socket: TransportSocket | None = None
        self._listeners: ListenerSet | None = None
        self._state = ConnectionState()
        self._pending_pushes: set[asyncio.Task] = set()

    # --- State ---

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state.effective_connected

    @property
    def socket(self) -> TransportSocket | None:
        return self._socket

    def get_connection_status(self) -> dict[str, Any]:
        """Read-only status; connected_clients assumes at most one doctor."""
        connected = self.is_connected
        return {"is_connected": connected, "connected_clients": 1 if connected else 0}

    def recompute(self) -> ConnectionTransition:
        """Re-derive the transport flag from the attached socket."""
        return self._apply()

    def _apply(self, remote_present: bool | None = None) -> ConnectionTransition:
        transport_connected = bool(self._socket is not None and getattr(self._socket, "connected", False))
        transition = self._state.apply(transport_connected=transport_connected, remote_present=remote_present)
        if transition.changed:
            logger.info(
                "Connection state changed",
                previous=transition.previous.value,
                current=transition.current.value,
                transport_connected=self._state.transport_connected,
                doctor_online=self._state.remote_present,
            )
        return transition

    # --- Socket lifecycle ---

    def attach(self, socket: TransportSocket | None) -> None:
        """
        Bind this manager's listeners to a socket, replacing any previous binding.

        Passing None detaches and resets both connection inputs. Attaching never
        pushes the dashboard; only a later transition into the live phase does.
        """
        self._unbind()
        self._socket = socket

        if socket is None:
            self._state.reset()
            logger.warning("attach called with no socket; connection state reset")
            return

        handlers = {
            EVENT_CONNECT: guard_listener(self._handle_transport_connect, EVENT_CONNECT),
            EVENT_DISCONNECT: guard_listener(self._handle_transport_disconnect, EVENT_DISCONNECT),
            EVENT_DOCTOR_PRESENCE: guard_listener(self._handle_presence, EVENT_DOCTOR_PRESENCE),
        }
        handlers.update(self.router.listeners())
        self._listeners = ListenerSet(
            socket=socket, handlers=handlers, catch_all=guard_listener(self._log_socket_event, "*")
        )
        self._listeners.bind()
        self.recompute()
        logger.info("Transport socket attached", transport_connected=self._state.transport_connected)

    def detach(self) -> None:
        """Remove listeners and forget the socket without closing it."""
        self._unbind()
        self._socket = None
        self._state.reset()

    def _unbind(self) -> None:
        if self._listeners is not None:
            self._listeners.unbind()
            self._listeners = None

    async def cleanup(self) -> None:
        self.detach()
        logger.info("Communication manager cleaned up")

    async def wait_for_pending_pushes(self) -> None:
        """Join dashboard pushes still in flight."""
        if self._pending_pushes:
            await asyncio.gather(*list(self._pending_pushes), return_exceptions=True)

    # --- Transport listeners ---

    async def _handle_transport_connect(self) -> None:
        logger.info("Transport socket connected")
        descriptor = ClientDescriptor(
            client_type=self.config.client_type,
            client_id=self.config.client_id,
            version=self.config.client_version,
            timestamp=utc_timestamp(),
        )
        if self._socket is not None:
            try:
                await emit_event(self._socket, EVENT_CLIENT_APP_CONNECT, descriptor.model_dump(by_alias=True))
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: identify is repeated by the network layer handshake
                logger.warning("Failed to emit client identity", error=str(e))

        if self._apply().entered_live:
            self._schedule_push(EVENT_CONNECT)

    def _handle_transport_disconnect(self, *_args: Any) -> None:
        logger.info("Transport socket disconnected")
        self._apply()

    def _handle_presence(self, data: Any = None) -> None:
        presence = PresencePayload.from_event(data)
        logger.info("Doctor presence received", online=presence.online)
        if self._apply(remote_present=presence.online).entered_live:
            self._schedule_push(EVENT_DOCTOR_PRESENCE)

    def _log_socket_event(self, event: str, *args: Any) -> None:
        logger.debug("Socket event", socket_event=event, arg_count=len(args))

    # --- Dashboard push ---

    def _schedule_push(self, trigger: str) -> asyncio.Task | None:
        """Start a detached dashboard push; its outcome is only logged."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, dashboard push skipped", trigger=trigger)
            return None
        task = loop.create_task(self._push_and_log(trigger))
        self._pending_pushes.add(task)
        task.add_done_callback(self._pending_pushes.discard)
        return task

    async def _push_and_log(self, trigger: str) -> None:
        try:
            result = await self.push_dashboard_on_connection()
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: detached task, nobody awaits its exception
            logger.error("Dashboard push crashed", trigger=trigger, error=str(e), error_type=type(e).__name__)
            return
        if result["success"]:
            logger.info("Dashboard pushed on connection", trigger=trigger)
        else:
            logger.warning("Dashboard push on connection failed", trigger=trigger, error=result.get("error"))

    async def push_dashboard_on_connection(self) -> dict[str, Any]:
        """
        Collect and send the dashboard and waiting-patients views.

        Connectivity is checked before the fetch and again right before
        sending, since the doctor may drop while the data is being read. The
        two sends are independent: one failing does not stop the other.

        Returns:
            {"success": True, "data": snapshot} or a failure result; never raises
        """
        if not self.is_connected:
            logger.info("Cannot push dashboard, no doctor connected")
            return create_failure_result(ErrorType.NOT_CONNECTED, ErrorMessages.NOT_CONNECTED)

        try:
            data = await self.aggregator.collect()
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: push result is reported, not raised
            logger.error("Failed to collect dashboard data", error=str(e), error_type=type(e).__name__)
            return create_failure_result(ErrorType.INTERNAL_ERROR, str(e))

        if not self.is_connected:
            logger.info("Connection lost while preparing dashboard data, aborting send")
            return create_failure_result(ErrorType.NOT_CONNECTED, ErrorMessages.DISCONNECTED_DURING_PUSH)

        errors: dict[str, str] = {}
        for event_name, send, payload in (
            (EVENT_DASHBOARD_STATUS, self.send_dashboard_status, data.snapshot),
            (EVENT_WAITING_PATIENTS, self.send_waiting_patients, data.waiting),
        ):
            try:
                result = await send(payload)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: each send fails independently
                logger.error("Dashboard send failed", socket_event=event_name, error=str(e))
                errors[event_name] = str(e)
                continue
            if not result["success"]:
                errors[event_name] = result["error"]

        snapshot = data.snapshot.to_wire()
        if errors:
            return create_failure_result(
                ErrorType.NETWORK_ERROR, "; ".join(f"{k}: {v}" for k, v in errors.items()), data=snapshot, errors=errors
            )
        return {"success": True, "data": snapshot}

    # --- Outbound sends ---

    def _not_connected(self, operation: str) -> dict[str, Any] | None:
        if self.is_connected and self._socket is not None:
            return None
        logger.info("Send refused, no doctor connected", operation=operation)
        return create_failure_result(ErrorType.NOT_CONNECTED, ErrorMessages.NOT_CONNECTED)

    async def send_dashboard_status(self, snapshot: DashboardSnapshot) -> dict[str, Any]:
        if failure := self._not_connected("send_dashboard_status"):
            return failure
        await emit_event(self._socket, EVENT_DASHBOARD_STATUS, self.aggregator.encrypt_snapshot(snapshot))
        logger.info(
            "dashboard-status emitted",
            today_patients=snapshot.today_patients_count,
            waiting_patients=snapshot.waiting_patients_count,
        )
        return {"success": True}

    async def send_waiting_patients(self, waiting: WaitingPatientsPayload) -> dict[str, Any]:
        if failure := self._not_connected("send_waiting_patients"):
            return failure
        await emit_event(self._socket, EVENT_WAITING_PATIENTS, self.aggregator.encrypt_waiting(waiting))
        logger.info("waiting-patients emitted", waiting_count=waiting.waiting_count)
        return {"success": True}

    async def send_message(self, text: str) -> dict[str, Any]:
        """Encrypt and send a chat message to the doctor."""
        if failure := self._not_connected("send_message"):
            return failure
        await emit_event(self._socket, EVENT_MESSAGE, self.cipher.encrypt(text))
        return {"success": True}

    async def send_patient_data(
        self,
        patient_data: dict[str, Any],
        *,
        patient_id: str | None = None,
        files: list[Any] | None = None,
    ) -> dict[str, Any]:
        """
        Encrypt and forward a patient record to the doctor.

        Without patient_id or files the raw record is sent; otherwise it is
        wrapped as {patientData, files, patientId}.
        """
        if failure := self._not_connected("send_patient_data"):
            return failure
        if patient_id is None and files is None:
            body: dict[str, Any] = patient_data
        else:
            body = PatientDataEnvelope(patient_data=patient_data, files=files, patient_id=patient_id).to_wire()
        await emit_event(self._socket, EVENT_PATIENT_DATA, self.cipher.encrypt(json.dumps(body, default=str)))
        logger.info("patient-data emitted", patient_id=patient_id or patient_data.get("id"))
        return {"success": True}

    async def send_file(self, patient_id: str, file_name: str, file_path: str | Path) -> dict[str, Any]:
        """
        Send a local file as base64 in a plaintext file:data envelope.

        Raises:
            ResourceNotFoundError: If the file cannot be read
        """
        if failure := self._not_connected("send_file"):
            return failure
        try:
            content = await asyncio.to_thread(Path(file_path).read_bytes)
        except OSError as e:
            raise handle_exception(
                e, ErrorContext(patient_id=patient_id, operation="send_file", metadata={"file_name": file_name})
            ) from e

        envelope = FileDataEnvelope(
            patient_id=patient_id,
            file_name=file_name,
            file_data=base64.b64encode(content).decode("ascii"),
            file_size=len(content),
        )
        await emit_event(self._socket, EVENT_FILE_DATA, envelope.model_dump(by_alias=True))
        logger.info("file:data emitted", patient_id=patient_id, file_size=len(content))
        return {"success": True}
