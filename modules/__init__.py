"""
Pulumi modules for the classification pipeline
Simple function-based approach following Pulumi best practices
"""

from .storage import create_pipeline_buckets
from .artifact import create_artifact_object
from .iam import create_iam_resources
from .function import create_classify_function

__all__ = [
    "create_pipeline_buckets",
    "create_artifact_object",
    "create_iam_resources",
    "create_classify_function"
]
