#!/usr/bin/env python3
"""
Upload the training images to the dataset buckets

Usage:
    python -m upload APPLES_BUCKET TOMATOES_BUCKET CSV_PATH [--train-dir DIR] [--workers N]
"""

import argparse
import logging
import sys

from upload.uploader import DEFAULT_WORKERS, UploadError, upload_dataset

logger = logging.getLogger("upload")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="upload",
        description="Upload labelled training images and write the dataset import CSV"
    )
    parser.add_argument("apples_bucket", help="dataset bucket for apple images")
    parser.add_argument("tomatoes_bucket", help="dataset bucket for tomato images")
    parser.add_argument("csv_path", help="where to write the import CSV")
    parser.add_argument("--train-dir", default="../archive/train",
                        help="training root holding apples/ and tomatoes/ (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS,
                        help="concurrent uploads per label (default: %(default)s)")
    args = parser.parse_args(argv)
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    return args


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
    args = parse_args(argv)

    try:
        counts = upload_dataset(
            args.train_dir,
            {"apple": args.apples_bucket, "tomato": args.tomatoes_bucket},
            args.csv_path,
            workers=args.workers
        )
    except UploadError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Uploaded {sum(counts.values())} images, wrote {args.csv_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
