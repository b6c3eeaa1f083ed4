"""
Handlers for events arriving from the doctor app.

Events are routed through a dispatch table keyed by event name. Every handler
bound to the socket is wrapped by guard_listener so that a bad packet is
logged and dropped instead of propagating into the transport.
"""

import functools
import inspect
import json
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import EncryptionError, MedOpsError
from ..schemas.realtime import InboundMessage
from ..structured_logging.enhanced_logging_config import get_logger
from .collaborators import ClinicDataSource, Cipher
from .socket_transport import EVENT_NEW_MESSAGE, EVENT_PATIENT_DATA

logger = get_logger(__name__)

InboundHandler = Callable[..., Any]


def guard_listener(handler: InboundHandler, event_name: str) -> InboundHandler:
    """
    Wrap a socket listener so it never raises.

    Works for both plain and coroutine functions; the wrapper keeps the
    handler's calling convention.
    """
    if inspect.iscoroutinefunction(handler):

        @functools.wraps(handler)
        async def async_guarded(*args: Any, **kwargs: Any) -> Any:
            try:
                return await handler(*args, **kwargs)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: listener failures must not reach the transport
                logger.error(
                    "Socket listener failed", socket_event=event_name, error=str(e), error_type=type(e).__name__
                )
                return None

        return async_guarded

    @functools.wraps(handler)
    def guarded(*args: Any, **kwargs: Any) -> Any:
        try:
            return handler(*args, **kwargs)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: listener failures must not reach the transport
            logger.error("Socket listener failed", socket_event=event_name, error=str(e), error_type=type(e).__name__)
            return None

    return guarded


class InboundEventRouter:
    """
    Dispatch table for inbound doctor-app events.

    The default table handles new-message and patient-data; further handlers
    can be registered by event name.
    """

    def __init__(self, data_source: ClinicDataSource, cipher: Cipher):
        self.data_source = data_source
        self.cipher = cipher
        self._handlers: dict[str, InboundHandler] = {
            EVENT_NEW_MESSAGE: self.handle_new_message,
            EVENT_PATIENT_DATA: self.handle_patient_data,
        }

    def register_handler(self, event_name: str, handler: InboundHandler) -> None:
        self._handlers[event_name] = handler
        logger.debug("Registered inbound handler", socket_event=event_name)

    def get_handler(self, event_name: str) -> InboundHandler | None:
        return self._handlers.get(event_name)

    def get_supported_events(self) -> list[str]:
        return list(self._handlers.keys())

    def listeners(self) -> dict[str, InboundHandler]:
        """Guarded handlers ready to bind on a socket."""
        return {event: guard_listener(handler, event) for event, handler in self._handlers.items()}

    async def dispatch(self, event_name: str, *args: Any) -> Any:
        """Route one event through its guarded handler; unknown events are logged and ignored."""
        handler = self.get_handler(event_name)
        if handler is None:
            logger.warning("No inbound handler for event", socket_event=event_name)
            return None
        result = guard_listener(handler, event_name)(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def handle_new_message(self, message: Any) -> dict[str, Any] | None:
        """
        Store a message received from the doctor.

        Duplicate suppression belongs to the data source; both outcomes are
        only logged here.
        """
        try:
            inbound = InboundMessage.model_validate(message)
        except PydanticValidationError as e:
            logger.warning("Discarding malformed message", error_count=e.error_count())
            return None

        result = await self.data_source.async_add_message({"sender": inbound.sender, "message": inbound.message})
        if result.get("duplicate"):
            logger.info("Duplicate message not stored again", message_id=result.get("id"))
        else:
            logger.info("Message stored", message_id=result.get("id"))
        return result

    async def handle_patient_data(self, encrypted_payload: Any) -> dict[str, Any] | None:
        """
        Decrypt a patient-data event and insert the nested patient.

        Decrypt, parse and shape failures are logged and swallowed; nothing is
        inserted for a malformed payload.
        """
        try:
            envelope = json.loads(self.cipher.decrypt(encrypted_payload))
            patient = envelope["patient"]
            if not isinstance(patient, dict):
                raise TypeError(f"patient must be an object, got {type(patient).__name__}")
        except (EncryptionError, ValueError, KeyError, TypeError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("Error processing received patient data", error=str(e), error_type=type(e).__name__)
            return None

        try:
            result = await self.data_source.async_add_patient(patient)
        except MedOpsError as e:
            logger.error("Error storing received patient", patient_id=patient.get("id"), error=str(e))
            return None

        logger.info("Received patient stored", patient_id=patient.get("id"))
        return result
