"""
Unit tests for the classification Cloud Function
"""

import base64
import unittest
from unittest.mock import MagicMock, Mock, patch
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cloudevents.http import CloudEvent

from classify import main as classify_main
from classify.main import (
    ClassifyError,
    build_predict_request,
    classify_object,
    destination_bucket,
    parse_prediction,
    parse_storage_event,
    query_endpoint,
)

BUCKET_ENV = {"DST_APPLE_BUCKET": "dst-apple", "DST_TOMATO_BUCKET": "dst-tomato"}


def response(status_code=200, payload=None, reason="OK"):
    mock_response = Mock(status_code=status_code, reason=reason)
    mock_response.json.return_value = payload or {}
    return mock_response


class FakeStorageClient:
    """Cloud Storage client with one MagicMock bucket per name"""

    def __init__(self):
        self.buckets = {}

    def bucket(self, name):
        return self.buckets.setdefault(name, MagicMock(name=name))


class TestEventParsing(unittest.TestCase):

    def test_parse_storage_event(self):
        self.assertEqual(parse_storage_event({"bucket": "src", "name": "a.jpg"}), ("src", "a.jpg"))

    def test_missing_fields(self):
        for data in (None, {}, {"bucket": "src"}, {"name": "a.jpg"}):
            with self.subTest(data=data):
                with self.assertRaises(ClassifyError):
                    parse_storage_event(data)


class TestPrediction(unittest.TestCase):

    def test_predict_request_body(self):
        body = build_predict_request(b"image-bytes")
        self.assertEqual(base64.b64decode(body["instances"][0]["content"]), b"image-bytes")
        self.assertEqual(body["parameters"], {"confidenceThreshold": 0.5, "maxPredictions": 5})

    def test_parse_prediction(self):
        payload = {"predictions": [{"displayNames": ["tomato", "apple"]}]}
        self.assertEqual(parse_prediction(payload), "tomato")

    def test_parse_empty_prediction(self):
        for payload in ({}, {"predictions": []}, {"predictions": [{"displayNames": []}]}):
            with self.subTest(payload=payload):
                with self.assertRaises(ClassifyError):
                    parse_prediction(payload)

    def test_parse_malformed_prediction(self):
        malformed = (
            [],
            ["apple"],
            None,
            {"predictions": {"displayNames": ["apple"]}},
            {"predictions": ["apple"]},
            {"predictions": [{"displayNames": "apple"}]},
            {"predictions": [{"displayNames": [None]}]},
        )
        for payload in malformed:
            with self.subTest(payload=payload):
                with self.assertRaises(ClassifyError):
                    parse_prediction(payload)

    def test_query_endpoint_list_response(self):
        session = Mock()
        session.get.return_value = response(payload={"access_token": "token-1"})
        session.post.return_value = response(payload=[{"displayNames": ["apple"]}])

        with self.assertRaises(ClassifyError):
            query_endpoint("my-project", "42", "us-central1", b"img", session=session)

    def test_query_endpoint(self):
        session = Mock()
        session.get.return_value = response(payload={"access_token": "token-1"})
        session.post.return_value = response(payload={"predictions": [{"displayNames": ["apple"]}]})

        label = query_endpoint("my-project", "42", "us-central1", b"img", session=session)

        self.assertEqual(label, "apple")
        self.assertEqual(session.get.call_args.kwargs["headers"], {"Metadata-Flavor": "Google"})
        url = session.post.call_args.args[0]
        self.assertEqual(
            url,
            "https://us-central1-aiplatform.googleapis.com/v1/projects/my-project"
            "/locations/us-central1/endpoints/42:predict"
        )
        self.assertEqual(session.post.call_args.kwargs["headers"], {"Authorization": "Bearer token-1"})

    def test_query_endpoint_http_error(self):
        session = Mock()
        session.get.return_value = response(payload={"access_token": "token-1"})
        session.post.return_value = response(status_code=403, reason="Forbidden")

        with self.assertRaises(ClassifyError) as ctx:
            query_endpoint("my-project", "42", "us-central1", b"img", session=session)
        self.assertIn("403", str(ctx.exception))

    def test_token_http_error(self):
        session = Mock()
        session.get.return_value = response(status_code=500, reason="Internal Server Error")

        with self.assertRaises(ClassifyError):
            query_endpoint("my-project", "42", "us-central1", b"img", session=session)
        session.post.assert_not_called()


class TestRouting(unittest.TestCase):

    def test_destination_bucket(self):
        with patch.dict(os.environ, BUCKET_ENV):
            self.assertEqual(destination_bucket("apple"), "dst-apple")
            self.assertEqual(destination_bucket("tomato"), "dst-tomato")

    def test_unknown_label(self):
        with patch.dict(os.environ, BUCKET_ENV):
            with self.assertRaises(ClassifyError):
                destination_bucket("banana")

    def test_unset_bucket(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ClassifyError):
                destination_bucket("apple")

    def test_classify_object_moves_image(self):
        client = FakeStorageClient()
        client.bucket("src").blob.return_value.download_as_bytes.return_value = b"img"

        with patch.dict(os.environ, BUCKET_ENV), \
                patch('classify.main.query_endpoint', return_value="tomato"):
            label = classify_object(client, "src", "a.jpg")

        self.assertEqual(label, "tomato")
        client.bucket("dst-tomato").blob.assert_called_with("a.jpg")
        client.bucket("dst-tomato").blob.return_value.upload_from_string.assert_called_once_with(b"img")
        client.bucket("src").blob.return_value.delete.assert_called_once_with()
        self.assertNotIn("dst-apple", client.buckets)

    def test_failed_classification_keeps_source(self):
        client = FakeStorageClient()
        client.bucket("src").blob.return_value.download_as_bytes.return_value = b"img"

        with patch.dict(os.environ, BUCKET_ENV), \
                patch('classify.main.query_endpoint', return_value="banana"):
            with self.assertRaises(ClassifyError):
                classify_object(client, "src", "a.jpg")

        client.bucket("src").blob.return_value.delete.assert_not_called()


class TestHandler(unittest.TestCase):

    def test_handler_classifies_event_object(self):
        event = CloudEvent(
            {
                "type": "google.cloud.storage.object.v1.finalized",
                "source": "//storage.googleapis.com/projects/_/buckets/src",
                "id": "event-1",
            },
            {"bucket": "src", "name": "a.jpg"},
        )

        with patch('classify.main.storage.Client') as mock_client, \
                patch('classify.main.classify_object') as mock_classify:
            classify_main.classify(event)

        mock_classify.assert_called_once_with(mock_client.return_value, "src", "a.jpg")


if __name__ == '__main__':
    unittest.main()
