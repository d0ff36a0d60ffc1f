"""
Storage Module Functions
Creates the Cloud Storage buckets used by the classification pipeline
"""

import pulumi
import pulumi_gcp as gcp
from typing import Dict, Optional


# Pipeline bucket roles, in declaration order
BUCKET_ROLES = (
    "asset",
    "dataset-apple",
    "dataset-tomato",
    "src",
    "dst-apple",
    "dst-tomato",
)


def bucket_name(role: str, project: str) -> str:
    """Globally unique bucket name for a pipeline role"""
    return f"{role}-bucket-{project}"


def create_bucket(role: str,
                  project: str,
                  region: str,
                  labels: Dict[str, str] = None,
                  force_destroy: bool = False,
                  opts: Optional[pulumi.ResourceOptions] = None) -> Dict[str, any]:
    """
    Create a regional storage bucket

    Args:
        role: Bucket role, one of BUCKET_ROLES
        project: GCP project id
        region: Bucket location
        labels: Additional labels
        force_destroy: Delete contained objects when the bucket is destroyed
        opts: Pulumi resource options

    Returns:
        Dict with bucket resource and outputs
    """
    labels = labels or {}

    bucket = gcp.storage.Bucket(
        f"{role}-bucket",
        name=bucket_name(role, project),
        location=region,
        uniform_bucket_level_access=True,
        force_destroy=force_destroy,
        labels={
            **labels,
            "role": role,
        },
        opts=opts
    )

    return {
        "bucket": bucket,
        "bucket_name": bucket.name,
        "bucket_url": bucket.url
    }


def create_pipeline_buckets(project: str,
                            region: str,
                            labels: Dict[str, str] = None,
                            force_destroy: bool = False,
                            opts: Optional[pulumi.ResourceOptions] = None) -> Dict[str, Dict[str, any]]:
    """
    Create every bucket of the pipeline

    Args:
        project: GCP project id
        region: Bucket location
        labels: Additional labels for all buckets
        force_destroy: Delete contained objects when buckets are destroyed
        opts: Pulumi resource options shared by all buckets

    Returns:
        Dict keyed by bucket role
    """
    return {
        role: create_bucket(role, project, region, labels, force_destroy, opts)
        for role in BUCKET_ROLES
    }
