"""
Classification Cloud Function
Moves each image finalized in the source bucket to the bucket of its predicted label
"""

import base64
import logging
import os

import functions_framework
import requests
from google.cloud import storage

# Configure logging for Cloud Functions
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

METADATA_TOKEN_URL = (
    "http://metadata.google.internal/computeMetadata/v1/instance/service-accounts/default/token"
)
PREDICT_URL = (
    "https://{region}-aiplatform.googleapis.com/v1/projects/{project}"
    "/locations/{region}/endpoints/{endpoint}:predict"
)
CONFIDENCE_THRESHOLD = 0.5
MAX_PREDICTIONS = 5
REQUEST_TIMEOUT = 60

# Predicted label -> environment variable naming its destination bucket
LABEL_BUCKET_ENV = {
    "apple": "DST_APPLE_BUCKET",
    "tomato": "DST_TOMATO_BUCKET",
}


class ClassifyError(Exception):
    """Raised when an uploaded image cannot be classified and moved"""


def parse_storage_event(data):
    """
    Extract bucket and object name from a storage event payload.

    Args:
        data (dict): CloudEvent data of a storage object event.

    Returns:
        tuple: (bucket, name)
    """
    bucket = (data or {}).get("bucket")
    name = (data or {}).get("name")
    if not bucket or not name:
        raise ClassifyError(f"Failed to decode event; bucket={bucket!r} name={name!r}")
    return bucket, name


def check_response(response):
    if response.status_code < 200 or response.status_code >= 400:
        raise ClassifyError(f"Got error HTTP status code; {response.status_code}; {response.reason}")


def get_access_token(session=requests):
    """Fetch an access token for the function's identity from the metadata server."""
    try:
        response = session.get(
            METADATA_TOKEN_URL,
            headers={"Metadata-Flavor": "Google"},
            timeout=REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        raise ClassifyError(f"Failed to send HTTP request; {e}") from e
    check_response(response)
    try:
        return response.json()["access_token"]
    except (ValueError, KeyError, TypeError) as e:
        raise ClassifyError(f"Failed to decode response JSON; {e}") from e


def build_predict_request(content):
    return {
        "instances": [{"content": base64.b64encode(content).decode("ascii")}],
        "parameters": {
            "confidenceThreshold": CONFIDENCE_THRESHOLD,
            "maxPredictions": MAX_PREDICTIONS,
        },
    }


def parse_prediction(payload):
    """
    Return the top display name of the first prediction.

    Args:
        payload (dict): Decoded predict response.

    Returns:
        str: The predicted label.
    """
    predictions = payload.get("predictions") if isinstance(payload, dict) else None
    if isinstance(predictions, list) and predictions and isinstance(predictions[0], dict):
        display_names = predictions[0].get("displayNames")
        if isinstance(display_names, list) and display_names and isinstance(display_names[0], str):
            return display_names[0]
    raise ClassifyError(f"Failed to classify image; unexpected response {payload!r}")


def query_endpoint(project_id, endpoint_id, region, content, session=requests):
    """
    Classify image bytes with the Vertex AI endpoint.

    Returns:
        str: The predicted label.
    """
    url = PREDICT_URL.format(region=region, project=project_id, endpoint=endpoint_id)
    token = get_access_token(session)
    try:
        response = session.post(
            url,
            json=build_predict_request(content),
            headers={"Authorization": f"Bearer {token}"},
            timeout=REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        raise ClassifyError(f"Failed to send HTTP request; {e}") from e
    check_response(response)
    try:
        payload = response.json()
    except ValueError as e:
        raise ClassifyError(f"Failed to decode JSON; {e}") from e
    return parse_prediction(payload)


def destination_bucket(label):
    """Resolve the destination bucket for a predicted label."""
    env_name = LABEL_BUCKET_ENV.get(label)
    if env_name is None:
        raise ClassifyError(f"Unknown result; {label}")
    bucket = os.environ.get(env_name)
    if not bucket:
        raise ClassifyError(f"{env_name} is not set")
    return bucket


def move_object(client, src_bucket, dst_bucket, name, content):
    """Write content to the destination bucket, then delete the source object."""
    client.bucket(dst_bucket).blob(name).upload_from_string(content)
    client.bucket(src_bucket).blob(name).delete()
    logger.info(f"Moved gs://{src_bucket}/{name} to gs://{dst_bucket}/{name}")


def classify_object(client, bucket, name):
    """
    Classify one uploaded image and move it to its destination bucket.

    Returns:
        str: The predicted label.
    """
    content = client.bucket(bucket).blob(name).download_as_bytes()
    label = query_endpoint(
        os.environ.get("PROJECT_ID", ""),
        os.environ.get("ENDPOINT_ID", ""),
        os.environ.get("REGION", "us-central1"),
        content
    )
    logger.info(f"Classified gs://{bucket}/{name} as {label}")
    move_object(client, bucket, destination_bucket(label), name, content)
    return label


@functions_framework.cloud_event
def classify(cloud_event):
    """Cloud Function triggered by object finalization in the source bucket.

    Args:
        cloud_event: The Cloud Event that triggered the function
    """
    logger.info(f"Received event {cloud_event['id']} of type {cloud_event['type']}")
    bucket, name = parse_storage_event(cloud_event.data)
    client = storage.Client()
    classify_object(client, bucket, name)
