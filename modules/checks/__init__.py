"""
Consistency checks for the declared pipeline
"""

from .functions import (
    ConfigurationError,
    PUBSUB_PUBLISHER_ROLE,
    check_unique_names,
    check_build_source,
    check_publisher_role,
)

__all__ = [
    "ConfigurationError",
    "PUBSUB_PUBLISHER_ROLE",
    "check_unique_names",
    "check_build_source",
    "check_publisher_role",
]
