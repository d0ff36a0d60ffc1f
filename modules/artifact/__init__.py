"""
Artifact Module
Content-addressed function source archive
"""

from .functions import (
    compute_directory_hash,
    create_source_archive,
    create_artifact_object,
)

__all__ = ["compute_directory_hash", "create_source_archive", "create_artifact_object"]
