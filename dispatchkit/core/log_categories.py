"""Log categories for structured logging and filtering."""

from enum import Enum


class LogCategory(str, Enum):
    """Log categories for filtering and organization.

    Attached to every event as the ``category`` field.
    """

    LIFECYCLE = "lifecycle"  # Startup, seal, shutdown
    ROUTING = "routing"  # Route registration and matching
    CONTAINER = "container"  # Dependency registration and construction
    CODEC = "codec"  # Codec registration and negotiation
    DISPATCH = "dispatch"  # Per-request state machine
    ERROR = "error"  # Exception resolution
    CONFIG = "config"  # Configuration loading and validation
    DEFAULT = "general"  # Uncategorized logs


LIFECYCLE = LogCategory.LIFECYCLE.value
ROUTING = LogCategory.ROUTING.value
CONTAINER = LogCategory.CONTAINER.value
CODEC = LogCategory.CODEC.value
DISPATCH = LogCategory.DISPATCH.value
ERROR = LogCategory.ERROR.value
CONFIG = LogCategory.CONFIG.value
