"""
Pydantic-based configuration models for MedOps.

Every section reads its own environment prefix; AppConfig aggregates them and
also reads a local .env file.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class DatabaseConfig(BaseSettings):
    """Local SQLite database configuration."""

    path: str = Field(default="medops.db", description="Path to the SQLite database file")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Validate the database path is not empty."""
        if not v or not v.strip():
            logger.error("Empty database path configured")
            raise ValueError("Database path must not be empty")
        return v.strip()

    model_config = {"env_prefix": "DATABASE_", "case_sensitive": False, "extra": "ignore"}


class SecurityConfig(BaseSettings):
    """Shared-key configuration for payloads exchanged with the doctor app."""

    encryption_key: str = Field(..., description="Passphrase shared with the doctor app (required)")

    @field_validator("encryption_key")
    @classmethod
    def validate_encryption_key(cls, v: str) -> str:
        """Validate the shared passphrase length."""
        if len(v) < 8:
            logger.error("Encryption key too short", length=len(v), minimum=8)
            raise ValueError("Encryption key must be at least 8 characters")
        return v

    model_config = {"env_prefix": "MEDOPS_", "case_sensitive": False, "extra": "ignore"}


class CommunicationConfig(BaseSettings):
    """Identity announced to the doctor app and message handling settings."""

    client_type: str = Field(default="assistant-app", description="Client type sent on connect")
    client_id: str = Field(default="medops", description="Client id sent on connect")
    client_version: str = Field(default="1.0.0", description="Client version sent on connect")
    message_duplicate_window_seconds: int = Field(
        default=5, description="Window in which an identical message is treated as a duplicate"
    )

    @field_validator("message_duplicate_window_seconds")
    @classmethod
    def validate_window(cls, v: int) -> int:
        """Validate the duplicate window is positive."""
        if v < 1:
            raise ValueError("Duplicate window must be at least 1 second")
        return v

    model_config = {"env_prefix": "COMMUNICATION_", "case_sensitive": False, "extra": "ignore"}


class BackupConfig(BaseSettings):
    """Patient backup configuration."""

    path: str | None = Field(default=None, description="Fallback backup directory when no setting is stored")
    version: str = Field(default="1.0", description="Backup file format version")

    model_config = {"env_prefix": "BACKUP_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="local", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    log_base: str = Field(default="logs", description="Base log directory")
    rotation_max_size: str = Field(default="10MB", description="Log rotation max size")
    rotation_backup_count: int = Field(default=5, description="Number of backup log files")
    disable_logging: bool = Field(default=False, description="Disable file logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "production"]
        if v not in valid_environments:
            logger.error("Invalid logging environment", environment=v, valid_environments=valid_environments)
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Return the dict shape consumed by setup_enhanced_logging."""
        return {
            "environment": self.environment,
            "level": self.level,
            "log_base": self.log_base,
            "rotation": {
                "max_size": self.rotation_max_size,
                "backup_count": self.rotation_backup_count,
            },
            "disable_logging": self.disable_logging,
        }


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    Access via the get_config() function.
    """

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)  # type: ignore[arg-type]
    communication: CommunicationConfig = Field(default_factory=CommunicationConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Flatten into the dict shape used by logging setup and the container."""
        return {
            "database": {"path": self.database.path},
            "communication": {
                "client_type": self.communication.client_type,
                "client_id": self.communication.client_id,
                "client_version": self.communication.client_version,
                "message_duplicate_window_seconds": self.communication.message_duplicate_window_seconds,
            },
            "backup": {"path": self.backup.path, "version": self.backup.version},
            "logging": self.logging.to_legacy_dict(),
        }
