"""
Artifact Module Functions
Packages the function source into a content-addressed archive and uploads it
"""

import hashlib
import os
import pulumi
import pulumi_gcp as gcp
from typing import Dict, Iterator, Optional


# Local build and cache output that must not change the artifact hash
IGNORED_DIRS = {"__pycache__", ".pytest_cache", ".git", ".venv"}
IGNORED_SUFFIXES = (".pyc", ".pyo")


def iter_source_files(source_dir: str) -> Iterator[str]:
    """
    Yield the files of a source directory in a stable order

    Args:
        source_dir: Directory to package

    Returns:
        Iterator of paths relative to source_dir, using "/" separators
    """
    for root, dirs, files in os.walk(source_dir):
        dirs[:] = sorted(d for d in dirs if d not in IGNORED_DIRS)
        for file_name in sorted(files):
            if file_name.endswith(IGNORED_SUFFIXES):
                continue
            relative = os.path.relpath(os.path.join(root, file_name), source_dir)
            yield relative.replace(os.sep, "/")


def compute_directory_hash(source_dir: str) -> str:
    """
    Compute the content hash of a directory

    The hash covers every file's relative path and bytes, so renaming or
    editing any file produces a new hash while an unchanged tree always
    hashes the same.

    Args:
        source_dir: Directory to hash

    Returns:
        Hex encoded sha256 digest

    Raises:
        ValueError: If the directory does not exist or holds no files
    """
    if not os.path.isdir(source_dir):
        raise ValueError(f"Function source directory not found: {source_dir}")

    digest = hashlib.sha256()
    file_count = 0
    for relative in iter_source_files(source_dir):
        digest.update(relative.encode("utf-8"))
        digest.update(b"\0")
        with open(os.path.join(source_dir, relative), "rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                digest.update(chunk)
        digest.update(b"\0")
        file_count += 1

    if file_count == 0:
        raise ValueError(f"Function source directory is empty: {source_dir}")

    return digest.hexdigest()


def create_source_archive(source_dir: str) -> Dict[str, any]:
    """
    Package a directory as a Pulumi archive

    The archive holds exactly the files that were hashed.

    Args:
        source_dir: Directory to package, relative to the project root

    Returns:
        Dict with the archive, its content hash and the resolved path
    """
    path = os.path.abspath(source_dir)
    asset_hash = compute_directory_hash(path)
    pulumi.log.info(f"Packaged {path} as {asset_hash}")

    return {
        "archive": pulumi.AssetArchive({
            relative: pulumi.FileAsset(os.path.join(path, relative))
            for relative in iter_source_files(path)
        }),
        "asset_hash": asset_hash,
        "path": path
    }


def create_artifact_object(name: str,
                           bucket: 'pulumi.Input[str]',
                           source_dir: str,
                           opts: Optional[pulumi.ResourceOptions] = None) -> Dict[str, any]:
    """
    Upload a packaged directory to a bucket under its content hash

    Args:
        name: Resource name prefix
        bucket: Name of the asset bucket
        source_dir: Directory to package
        opts: Pulumi resource options

    Returns:
        Dict with the bucket object and its outputs
    """
    archive = create_source_archive(source_dir)

    bucket_object = gcp.storage.BucketObject(
        f"{name}-source-object",
        bucket=bucket,
        name=archive["asset_hash"],
        source=archive["archive"],
        opts=opts
    )

    return {
        "object": bucket_object,
        "object_name": bucket_object.name,
        "object_bucket": bucket_object.bucket,
        "asset_hash": archive["asset_hash"]
    }
