import unittest
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, unquote, urlsplit

from spaces_browser.client import ObjectStoreClient
from spaces_browser.exceptions import (
    ConnectivityError,
    DecodeError,
    MalformedBodyError,
    RemoteError,
    SigningError,
    TransportError,
    UnexpectedDocumentError,
)
from spaces_browser.models import BucketRecord, Credentials, ObjectRecord
from spaces_browser.signer import RequestSigner
from spaces_browser.transport import TransportResponse

BUCKETS_XML = b"""<ListAllMyBucketsResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Buckets><Bucket><Name>media</Name><CreationDate>2020-01-01T00:00:00.000Z</CreationDate></Bucket></Buckets>
</ListAllMyBucketsResult>"""

OBJECTS_XML = b"""<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>media</Name><Prefix>photos/</Prefix><IsTruncated>false</IsTruncated>
  <Contents><Key>photos/b.jpg</Key><Size>2</Size><ETag>"e2"</ETag></Contents>
  <Contents><Key>photos/a.jpg</Key><Size>1</Size><ETag>"e1"</ETag></Contents>
</ListBucketResult>"""

EMPTY_OBJECTS_XML = b"<ListBucketResult><Name>media</Name><Prefix></Prefix></ListBucketResult>"

ERROR_XML = b"<Error><Code>NoSuchBucket</Code><Message>The specified bucket does not exist.</Message></Error>"


class FakeTransport:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def send(self, method, url, headers, body=None):
        self.calls.append({"method": method, "url": url, "headers": dict(headers), "body": body})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    def __init__(self, start):
        self.current = start

    def __call__(self):
        moment = self.current
        self.current = self.current + timedelta(seconds=1)
        return moment


def ok(body):
    return TransportResponse(status=200, headers={}, body=body)


class ObjectStoreClientTests(unittest.TestCase):
    def setUp(self):
        self.credentials = Credentials(access_key_id="AKID", secret_access_key="secret", region="nyc3")
        self.clock = FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))

    def make_client(self, *responses, **kwargs):
        transport = FakeTransport(responses)
        client = ObjectStoreClient(self.credentials, transport=transport, clock=self.clock, **kwargs)
        return client, transport

    def test_endpoint_is_region_qualified(self):
        client, _ = self.make_client()

        self.assertEqual("nyc3.digitaloceanspaces.com", client.endpoint)
        self.assertEqual("nyc3", client.region)

    def test_custom_storage_domain(self):
        client, _ = self.make_client(storage_domain="example.test")

        self.assertEqual("nyc3.example.test", client.endpoint)

    def test_construction_validates_credentials(self):
        with self.assertRaises(SigningError):
            ObjectStoreClient(
                Credentials(access_key_id="AKID", secret_access_key="", region="nyc3"),
                transport=FakeTransport([]),
            )

    def test_list_buckets_sends_signed_request(self):
        client, transport = self.make_client(ok(BUCKETS_XML))

        buckets = client.list_buckets()

        self.assertEqual(
            [BucketRecord(name="media", region="nyc3", created_at="2020-01-01T00:00:00.000Z")],
            buckets,
        )
        call = transport.calls[0]
        self.assertEqual("GET", call["method"])
        self.assertEqual("https://nyc3.digitaloceanspaces.com/", call["url"])
        self.assertEqual("Wed, 01 May 2024 12:00:00 GMT", call["headers"]["Date"])
        expected = RequestSigner(self.credentials).sign("GET", "/", "Wed, 01 May 2024 12:00:00 GMT")
        self.assertEqual(expected, call["headers"]["Authorization"])
        self.assertIsNone(call["body"])

    def test_list_objects_passes_encoded_prefix_and_keeps_order(self):
        client, transport = self.make_client(ok(OBJECTS_XML))

        objects = client.list_objects("media", "photos/")

        self.assertEqual(["photos/b.jpg", "photos/a.jpg"], [record.key for record in objects])
        self.assertEqual(ObjectRecord(key="photos/b.jpg", size=2, etag="e2"), objects[0])
        call = transport.calls[0]
        self.assertEqual("https://nyc3.digitaloceanspaces.com/media?prefix=photos%2F", call["url"])
        date = call["headers"]["Date"]
        expected = RequestSigner(self.credentials).sign("GET", "/media", date)
        self.assertEqual(expected, call["headers"]["Authorization"])

    def test_list_objects_without_prefix_has_no_query(self):
        client, transport = self.make_client(ok(EMPTY_OBJECTS_XML))

        client.list_objects("media")

        self.assertEqual("https://nyc3.digitaloceanspaces.com/media", transport.calls[0]["url"])

    def test_empty_bucket_returns_empty_list(self):
        client, _ = self.make_client(ok(EMPTY_OBJECTS_XML))

        self.assertEqual([], client.list_objects("media"))

    def test_list_objects_requires_bucket(self):
        client, transport = self.make_client()

        with self.assertRaises(ValueError):
            client.list_objects("")
        self.assertEqual([], transport.calls)

    def test_prefix_with_reserved_characters_round_trips(self):
        prefix = "my folder/a&b=c?/"
        echoed = (
            b"<ListBucketResult><Name>media</Name><Prefix>my folder/a&amp;b=c?/</Prefix></ListBucketResult>"
        )
        client, transport = self.make_client(ok(echoed))

        page = client.list_objects_page("media", prefix)

        query = urlsplit(transport.calls[0]["url"]).query
        self.assertNotIn(" ", query)
        self.assertNotIn("&b", query)
        self.assertEqual([prefix], parse_qs(query)["prefix"])
        self.assertEqual(prefix, unquote(query[len("prefix="):]))
        self.assertEqual(prefix, page.prefix)

    def test_each_call_signs_a_fresh_timestamp(self):
        client, transport = self.make_client(ok(BUCKETS_XML), ok(BUCKETS_XML))

        client.list_buckets()
        client.list_buckets()

        first, second = transport.calls
        self.assertNotEqual(first["headers"]["Date"], second["headers"]["Date"])
        self.assertNotEqual(first["headers"]["Authorization"], second["headers"]["Authorization"])

    def test_error_document_raises_remote_error(self):
        client, _ = self.make_client(TransportResponse(status=404, body=ERROR_XML))

        with self.assertRaises(RemoteError) as ctx:
            client.list_objects("missing")

        self.assertEqual("NoSuchBucket", ctx.exception.code)
        self.assertEqual("The specified bucket does not exist.", ctx.exception.message)
        self.assertEqual(404, ctx.exception.status)

    def test_error_document_with_success_status_raises_remote_error(self):
        client, _ = self.make_client(ok(ERROR_XML))

        with self.assertRaises(RemoteError):
            client.list_buckets()

    def test_error_status_without_document_raises_remote_error(self):
        client, _ = self.make_client(TransportResponse(status=503, body=b"<html>busy</html"))

        with self.assertRaises(RemoteError) as ctx:
            client.list_buckets()

        self.assertEqual("HTTP503", ctx.exception.code)
        self.assertEqual(503, ctx.exception.status)

    def test_malformed_success_body_raises_decode_error(self):
        client, _ = self.make_client(ok(b"not xml"))

        with self.assertRaises(MalformedBodyError):
            client.list_buckets()

    def test_wrong_listing_kind_raises_decode_error(self):
        client, _ = self.make_client(
            ok(b"<ListBucketResult><Contents><Key>a</Key></Contents></ListBucketResult>"),
            ok(BUCKETS_XML),
        )

        with self.assertRaises(UnexpectedDocumentError):
            client.list_buckets()
        with self.assertRaises(DecodeError):
            client.list_objects("media")

    def test_transport_failures_propagate_without_retry(self):
        failure = ConnectivityError("connection refused")
        client, transport = self.make_client(failure, ok(BUCKETS_XML))

        with self.assertRaises(TransportError) as ctx:
            client.list_buckets()

        self.assertIs(failure, ctx.exception)
        self.assertEqual(1, len(transport.calls))

    def test_truncated_page_is_flagged_and_logged(self):
        body = b"<ListBucketResult><IsTruncated>true</IsTruncated><Contents><Key>a</Key></Contents></ListBucketResult>"
        client, _ = self.make_client(ok(body))

        with self.assertLogs("spaces_browser.client", level="WARNING") as logs:
            page = client.list_objects_page("media")

        self.assertTrue(page.is_truncated)
        self.assertIn("truncated", logs.output[0])

    def test_authorization_header_is_not_logged(self):
        client, transport = self.make_client(ok(BUCKETS_XML))

        with self.assertLogs("spaces_browser.client", level="DEBUG") as logs:
            client.list_buckets()

        signature = transport.calls[0]["headers"]["Authorization"]
        self.assertFalse(any(signature in line for line in logs.output))
        self.assertFalse(any("secret" in line for line in logs.output))

    def test_object_url_uses_virtual_host(self):
        client, _ = self.make_client()

        self.assertEqual(
            "https://media.nyc3.digitaloceanspaces.com/photos/my%20cat.jpg",
            client.object_url("media", "photos/my cat.jpg"),
        )


if __name__ == "__main__":
    unittest.main()
