import base64
import hashlib
import hmac
import unittest
from datetime import datetime, timezone

from spaces_browser.exceptions import SigningError
from spaces_browser.models import Credentials
from spaces_browser.signer import RequestSigner, canonical_resource, format_http_date

DATE = "Tue, 27 Mar 2007 19:36:42 GMT"


def expected_signature(secret: str, string_to_sign: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


class RequestSignerTests(unittest.TestCase):
    def setUp(self):
        self.credentials = Credentials(access_key_id="AKID", secret_access_key="secret", region="nyc3")
        self.signer = RequestSigner(self.credentials)

    def test_string_to_sign_has_blank_md5_and_content_type_lines(self):
        self.assertEqual(
            f"GET\n\n\n{DATE}\n/my-bucket",
            self.signer.string_to_sign("GET", "my-bucket", DATE),
        )

    def test_root_resource_signs_as_slash(self):
        self.assertEqual(f"GET\n\n\n{DATE}\n/", self.signer.string_to_sign("GET", "/", DATE))
        self.assertEqual(f"GET\n\n\n{DATE}\n/", self.signer.string_to_sign("GET", "", DATE))

    def test_query_string_is_not_signed(self):
        self.assertEqual("/my-bucket", canonical_resource("/my-bucket?prefix=a%2F"))

    def test_header_uses_aws_scheme_and_hmac_sha1(self):
        header = self.signer.sign("GET", "/my-bucket", DATE)

        signature = expected_signature("secret", f"GET\n\n\n{DATE}\n/my-bucket")
        self.assertEqual(f"AWS AKID:{signature}", header)

    def test_sign_is_deterministic(self):
        first = self.signer.sign("GET", "/my-bucket", DATE)
        second = RequestSigner(self.credentials).sign("GET", "/my-bucket", DATE)

        self.assertEqual(first, second)

    def test_each_input_changes_the_signature(self):
        baseline = self.signer.sign("GET", "/my-bucket", DATE)
        other_secret = RequestSigner(
            Credentials(access_key_id="AKID", secret_access_key="other", region="nyc3")
        )

        variants = {
            self.signer.sign("HEAD", "/my-bucket", DATE),
            self.signer.sign("GET", "/other-bucket", DATE),
            self.signer.sign("GET", "/my-bucket", "Tue, 27 Mar 2007 19:36:43 GMT"),
            other_secret.sign("GET", "/my-bucket", DATE),
        }

        self.assertNotIn(baseline, variants)
        self.assertEqual(4, len(variants))

    def test_datetime_timestamp_is_formatted_as_rfc1123(self):
        moment = datetime(2007, 3, 27, 19, 36, 42, tzinfo=timezone.utc)

        self.assertEqual(DATE, format_http_date(moment))
        self.assertEqual(
            self.signer.sign("GET", "/", DATE),
            self.signer.sign("GET", "/", moment),
        )

    def test_naive_datetime_is_treated_as_utc(self):
        self.assertEqual(DATE, format_http_date(datetime(2007, 3, 27, 19, 36, 42)))

    def test_empty_secret_fails_at_construction(self):
        with self.assertRaises(SigningError):
            RequestSigner(Credentials(access_key_id="AKID", secret_access_key="", region="nyc3"))

    def test_empty_access_key_fails_at_construction(self):
        with self.assertRaises(SigningError):
            RequestSigner(Credentials(access_key_id="", secret_access_key="secret", region="nyc3"))

    def test_repr_does_not_leak_secret(self):
        self.assertNotIn("secret", repr(self.signer))
        self.assertNotIn("secret_access_key", repr(self.credentials))


if __name__ == "__main__":
    unittest.main()
