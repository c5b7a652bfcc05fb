"""Core - configuration and logging."""

from backoffice.core.config import Settings, settings
from backoffice.core.logging_config import configure_logging, get_logger
