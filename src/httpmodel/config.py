"""
=============================================================================
MESSAGE MODEL CONFIGURATION
=============================================================================

Centralized settings for the parts of the message model that touch real
resources: in-memory body buffers, upload copies and logging.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  1. Defaults         MessageConfig()                                │
    │  2. Code             MessageConfig(memory_limit=8 * 1024 * 1024)    │
    │  3. Environment      MessageConfig.from_env()                       │
    └─────────────────────────────────────────────────────────────────────┘

The active configuration is process-wide:

    set_config(MessageConfig.from_env())
    get_config().memory_limit

=============================================================================
"""

import logging
import os
from dataclasses import dataclass


@dataclass
class MessageConfig:
    """
    Configuration for the message model.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    STREAMS
    - memory_limit, copy_chunk_size

    MESSAGES
    - default_protocol_version

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # STREAMS
    # ─────────────────────────────────────────────────────────────────────

    memory_limit: int = 2 * 1024 * 1024  # 2 MB
    """
    Size in bytes after which a body created from a string spills from
    memory into a temporary file.
    """

    copy_chunk_size: int = 64 * 1024  # 64 KB
    """
    Chunk size used when an uploaded stream is copied to its target path.
    """

    # ─────────────────────────────────────────────────────────────────────
    # MESSAGES
    # ─────────────────────────────────────────────────────────────────────

    default_protocol_version: str = "1.1"
    """
    Protocol version given to messages constructed without one.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Level for the "httpmodel" logger (DEBUG, INFO, WARNING, ERROR).
    """

    @classmethod
    def from_env(cls) -> "MessageConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPMODEL_MEMORY_LIMIT      In-memory body limit (default: 2097152)
        HTTPMODEL_COPY_CHUNK_SIZE   Upload copy chunk size (default: 65536)
        HTTPMODEL_PROTOCOL_VERSION  Default protocol version (default: 1.1)
        HTTPMODEL_LOG_LEVEL         Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            memory_limit=int(os.getenv("HTTPMODEL_MEMORY_LIMIT", str(2 * 1024 * 1024))),
            copy_chunk_size=int(os.getenv("HTTPMODEL_COPY_CHUNK_SIZE", str(64 * 1024))),
            default_protocol_version=os.getenv("HTTPMODEL_PROTOCOL_VERSION", "1.1"),
            log_level=os.getenv("HTTPMODEL_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """Validate configuration values. Fails fast with ValueError."""
        if self.memory_limit < 0:
            raise ValueError(f"memory_limit must be >= 0, got {self.memory_limit}")

        if self.copy_chunk_size < 1:
            raise ValueError(f"copy_chunk_size must be >= 1, got {self.copy_chunk_size}")

        if not self.default_protocol_version:
            raise ValueError("default_protocol_version must not be empty")

        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise ValueError(f"Invalid log_level: {self.log_level}")

    def setup_logging(self) -> None:
        """Configure logging based on config."""
        level = getattr(logging, self.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("httpmodel").setLevel(level)


_config = MessageConfig()


def get_config() -> MessageConfig:
    """Return the active process-wide configuration."""
    return _config


def set_config(config: MessageConfig) -> None:
    """Validate and install a new process-wide configuration."""
    global _config
    config.validate()
    _config = config
