"""
Consistency Check Functions
Synthesis-time checks on the declared resources
"""

from collections import Counter
from typing import Dict, Iterable


PUBSUB_PUBLISHER_ROLE = "roles/pubsub.publisher"


class ConfigurationError(ValueError):
    """Raised when the declared pipeline is inconsistent"""


def check_unique_names(names: Iterable[str]) -> None:
    """
    Check that every resource name in a namespace is unique

    Args:
        names: Resource names sharing one namespace

    Raises:
        ConfigurationError: If any name is declared more than once
    """
    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise ConfigurationError(f"Duplicate resource names: {', '.join(duplicates)}")


def check_build_source(storage_source: Dict[str, str], bucket: str, object_name: str) -> None:
    """
    Check that a function build source points at the uploaded artifact

    Args:
        storage_source: Resolved build source with "bucket" and "object" keys
        bucket: Bucket the artifact was uploaded to
        object_name: Name of the uploaded artifact object

    Raises:
        ConfigurationError: If the build source references another object
    """
    expected = {"bucket": bucket, "object": object_name}
    actual = {"bucket": storage_source.get("bucket"), "object": storage_source.get("object")}
    if actual != expected:
        raise ConfigurationError(
            f"Function build source gs://{actual['bucket']}/{actual['object']} "
            f"does not match uploaded artifact gs://{bucket}/{object_name}"
        )


def check_publisher_role(role: str) -> None:
    """
    Check that the storage service account binding grants exactly the publisher role

    The storage event trigger only needs to publish to Pub/Sub.
    """
    if role != PUBSUB_PUBLISHER_ROLE:
        raise ConfigurationError(
            f"Storage service account must be granted {PUBSUB_PUBLISHER_ROLE}, got {role}"
        )
