"""
Dataset upload tool
Uploads labelled training images to the dataset buckets and writes the import CSV
"""

from .uploader import LABEL_DIRS, UploadError, object_key, gcs_uri, upload_label, upload_dataset

__all__ = ["LABEL_DIRS", "UploadError", "object_key", "gcs_uri", "upload_label", "upload_dataset"]
