"""
Concurrent upload of labelled training images
"""

import concurrent.futures
import csv
import logging
import os
from typing import Callable, Dict, List, Optional

from google.cloud import storage

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4

# Label -> image directory under the training root
LABEL_DIRS = {
    "apple": "apples",
    "tomato": "tomatoes",
}


class UploadError(Exception):
    """Raised when the dataset cannot be uploaded"""


def object_key(label: str, path: str) -> str:
    """Object key of an image, grouped by label"""
    return f"{label}/{os.path.basename(path)}"


def gcs_uri(bucket_name: str, key: str) -> str:
    return f"gs://{bucket_name}/{key}"


def list_images(image_dir: str) -> List[str]:
    """
    List the image files of a directory in name order

    Raises:
        UploadError: If the directory cannot be read
    """
    try:
        entries = sorted(os.listdir(image_dir))
    except OSError as e:
        raise UploadError(f"Failed to read directory {image_dir}: {e}") from e
    return [
        os.path.join(image_dir, entry)
        for entry in entries
        if os.path.isfile(os.path.join(image_dir, entry))
    ]


def upload_file(bucket: storage.Bucket, label: str, path: str) -> str:
    """Upload one image and return its object key"""
    key = object_key(label, path)
    bucket.blob(key).upload_from_filename(path)
    logger.debug(f"Uploaded {path} to {gcs_uri(bucket.name, key)}")
    return key


def upload_label(client: storage.Client,
                 image_dir: str,
                 bucket_name: str,
                 label: str,
                 writer,
                 workers: int = DEFAULT_WORKERS) -> int:
    """
    Upload every image of one label and record it in the CSV

    Args:
        client: Cloud Storage client
        image_dir: Directory holding the label's images
        bucket_name: Dataset bucket for the label
        label: Label written next to each image
        writer: csv.writer receiving "gs://bucket/key,label" rows
        workers: Number of concurrent uploads

    Returns:
        Number of uploaded images

    Raises:
        UploadError: If the directory cannot be read or an upload fails
    """
    paths = list_images(image_dir)
    bucket = client.bucket(bucket_name)
    logger.info(f"Uploading {len(paths)} {label} images to gs://{bucket_name} with {workers} workers")

    uploaded = 0
    failure = None
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(upload_file, bucket, label, path): path for path in paths}
        # Uploads already running when one fails still finish and get their row
        for future in concurrent.futures.as_completed(futures):
            if future.cancelled():
                continue
            path = futures[future]
            try:
                key = future.result()
            except Exception as e:
                if failure is None:
                    failure = (path, e)
                    for pending in futures:
                        pending.cancel()
                continue
            writer.writerow([gcs_uri(bucket_name, key), label])
            uploaded += 1

    if failure is not None:
        path, error = failure
        raise UploadError(f"Failed to upload {path} after {uploaded} uploads: {error}") from error

    return uploaded


def upload_dataset(train_dir: str,
                   buckets: Dict[str, str],
                   csv_path: str,
                   workers: int = DEFAULT_WORKERS,
                   client_factory: Optional[Callable[[], storage.Client]] = None) -> Dict[str, int]:
    """
    Upload the apple and tomato training images and write the import CSV

    Args:
        train_dir: Training root holding one directory per label
        buckets: Dataset bucket name per label
        csv_path: Where to write the import CSV
        workers: Number of concurrent uploads per label
        client_factory: Builds the Cloud Storage client

    Returns:
        Number of uploaded images per label
    """
    client = (client_factory or storage.Client)()
    counts = {}
    with open(csv_path, "w", newline="") as csv_file:
        writer = csv.writer(csv_file)
        for label, directory in LABEL_DIRS.items():
            counts[label] = upload_label(
                client,
                os.path.join(train_dir, directory),
                buckets[label],
                label,
                writer,
                workers
            )
    return counts
