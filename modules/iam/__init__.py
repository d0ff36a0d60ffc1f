"""
IAM Module
Storage service agent publisher binding
"""

from .functions import get_storage_service_account, grant_pubsub_publisher, create_iam_resources

__all__ = ["get_storage_service_account", "grant_pubsub_publisher", "create_iam_resources"]
