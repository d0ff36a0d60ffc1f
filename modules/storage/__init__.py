"""
Storage Module
Asset, dataset, source and destination buckets
"""

from .functions import BUCKET_ROLES, bucket_name, create_bucket, create_pipeline_buckets

__all__ = ["BUCKET_ROLES", "bucket_name", "create_bucket", "create_pipeline_buckets"]
