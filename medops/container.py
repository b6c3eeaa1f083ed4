"""
Application container for MedOps.

Builds every service in dependency order and tears them down in reverse.

USAGE:
    container = ApplicationContainer()
    await container.initialize()
    container.communication_manager.attach(socket)   # socket owned by the network layer
    ...
    await container.shutdown()
"""

import asyncio
import threading
from typing import Any

from .config.models import AppConfig
from .persistence.clinic_database import ClinicDatabase
from .persistence.patient_backup import PatientBackupManager
from .realtime.communication_manager import CommunicationManager
from .services.patient_queue_service import PatientQueueService
from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging
from .utils.encryption import PayloadCipher

logger = get_logger(__name__)


class ApplicationContainer:
    """
    Holds the configured services.

    Services are created by initialize(), not by the constructor, so a
    container can be built without side effects.
    """

    _instance: "ApplicationContainer | None" = None
    _lock: threading.Lock = threading.Lock()

    def __init__(self, config: AppConfig | None = None):
        self.config: AppConfig | None = config
        self.database: ClinicDatabase | None = None
        self.backup_manager: PatientBackupManager | None = None
        self.cipher: PayloadCipher | None = None
        self.communication_manager: CommunicationManager | None = None
        self.patient_queue_service: PatientQueueService | None = None

        self._initialized: bool = False
        self._initialization_lock = asyncio.Lock()

    @classmethod
    def get_instance(cls) -> "ApplicationContainer":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the singleton. Tests only."""
        with cls._lock:
            cls._instance = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize all services in dependency order.

        INITIALIZATION ORDER:
        1. Configuration and logging
        2. Database (schema and default settings)
        3. Patient backups, hooked on patient writes
        4. Cipher and communication manager
        5. Queue service
        """
        async with self._initialization_lock:
            if self._initialized:
                logger.warning("Container already initialized - skipping re-initialization")
                return

            if self.config is None:
                from .config import get_config

                self.config = get_config()
            setup_enhanced_logging(self.config.to_legacy_dict())
            logger.info("Initializing ApplicationContainer", environment=self.config.logging.environment)

            self.database = ClinicDatabase(
                self.config.database.path,
                duplicate_window_seconds=self.config.communication.message_duplicate_window_seconds,
            )
            await self.database.async_initialize()

            self.backup_manager = PatientBackupManager(self.database, self.config.backup)
            self.database.register_hook("after_patient_write", self.backup_manager.on_patient_written)

            self.cipher = PayloadCipher(self.config.security.encryption_key)
            self.communication_manager = CommunicationManager(
                self.database, self.cipher, config=self.config.communication
            )
            self.patient_queue_service = PatientQueueService(self.database, self.communication_manager)

            self._initialized = True
            logger.info("ApplicationContainer initialized", db_path=self.config.database.path)

    async def shutdown(self) -> None:
        """
        Shut services down in reverse order.

        Pending dashboard pushes are joined before the listeners are removed.
        The transport socket itself is left open for its owner.
        """
        logger.info("Shutting down ApplicationContainer...")
        if self.communication_manager is not None:
            await self.communication_manager.wait_for_pending_pushes()
            await self.communication_manager.cleanup()
        if self.database is not None:
            self.database.close()
        self._initialized = False
        logger.info("ApplicationContainer shutdown complete")

    def status(self) -> dict[str, Any]:
        """Summary used by the desk UI's connection indicator."""
        connection = (
            self.communication_manager.get_connection_status()
            if self.communication_manager is not None
            else {"is_connected": False, "connected_clients": 0}
        )
        return {"initialized": self._initialized, "connection": connection}
