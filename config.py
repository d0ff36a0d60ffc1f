"""
Configuration management for the apple/tomato classification pipeline
"""

import pulumi
from typing import Dict

from modules.checks import ConfigurationError


class Config:
    """Centralized configuration management for the classification deployment"""

    def __init__(self):
        self.config = pulumi.Config()
        gcp_config = pulumi.Config("gcp")

        # GCP Configuration
        self.project = gcp_config.get("project") or "qiita-apple-tomato-classify"
        self.region = gcp_config.get("region") or "us-central1"

        # Function Configuration
        self.function_name = self.config.get("function_name") or "classify"
        self.function_runtime = self.config.get("function_runtime") or "python312"
        self.function_entry_point = self.config.get("function_entry_point") or "classify"
        self.function_source_dir = self.config.get("function_source_dir") or "classify"
        # Instance bounds keep an explicit 0
        min_instance_count = self.config.get_int("min_instance_count")
        max_instance_count = self.config.get_int("max_instance_count")
        self.min_instance_count = 0 if min_instance_count is None else min_instance_count
        self.max_instance_count = 1 if max_instance_count is None else max_instance_count

        # Vertex AI endpoint the function queries
        self.endpoint_id = self.config.get("endpoint_id") or ""

        # Buckets
        self.force_destroy_buckets = self.config.get_bool("force_destroy_buckets") or False

        # Additional labels
        self.additional_labels = self.config.get_object("labels") or {}

        if self.min_instance_count < 0 or self.max_instance_count < 0:
            raise ConfigurationError("Instance counts must not be negative")
        if self.min_instance_count > self.max_instance_count:
            raise ConfigurationError(
                f"min_instance_count ({self.min_instance_count}) exceeds "
                f"max_instance_count ({self.max_instance_count})"
            )

    @property
    def common_labels(self) -> Dict[str, str]:
        """Get common labels for all resources"""
        base_labels = {
            "project": "apple-tomato-classify",
            "managed-by": "pulumi",
        }
        base_labels.update(self.additional_labels)
        return base_labels


def get_config() -> Config:
    """Get the global configuration instance"""
    return Config()
