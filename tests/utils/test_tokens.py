import hashlib

from django.test import SimpleTestCase, override_settings

from api_sessions.utils.tokens import (
    FINGERPRINT_LENGTH,
    fingerprint_token,
    extract_bearer_token,
    build_authorization_header,
)


class FingerprintTokenTests(SimpleTestCase):
    def test_fingerprint_is_short_digest_prefix(self):
        expected = hashlib.sha256(b"secret-token").hexdigest()[:FINGERPRINT_LENGTH]
        self.assertEqual(fingerprint_token("secret-token"), expected)

    def test_fingerprint_never_contains_token(self):
        self.assertNotIn("secret-token", fingerprint_token("secret-token"))

    def test_missing_token(self):
        self.assertEqual(fingerprint_token(None), "-")
        self.assertEqual(fingerprint_token(""), "-")

    def test_distinct_tokens_have_distinct_fingerprints(self):
        self.assertNotEqual(fingerprint_token("a"), fingerprint_token("b"))

    @override_settings(
        API_SESSIONS={
            "BASE_URL": "https://api.herhomes.test",
            "TOKEN_FINGERPRINT_ALGORITHM": "md5",
        }
    )
    def test_configured_algorithm(self):
        expected = hashlib.md5(b"secret-token").hexdigest()[:FINGERPRINT_LENGTH]
        self.assertEqual(fingerprint_token("secret-token"), expected)


class AuthorizationHeaderTests(SimpleTestCase):
    def test_build_header(self):
        self.assertEqual(build_authorization_header("abc"), "Bearer abc")

    def test_extract_token(self):
        self.assertEqual(extract_bearer_token({"Authorization": "Bearer abc"}), "abc")
        self.assertEqual(extract_bearer_token({"authorization": "bearer abc"}), "abc")

    def test_extract_token_rejects_malformed_headers(self):
        for headers in (
            None,
            {},
            {"Authorization": ""},
            {"Authorization": "Bearer"},
            {"Authorization": "Bearer a b"},
            {"Authorization": "Basic abc"},
        ):
            with self.subTest(headers=headers):
                self.assertIsNone(extract_bearer_token(headers))

    def test_round_trip(self):
        header = build_authorization_header("abc")
        self.assertEqual(extract_bearer_token({"Authorization": header}), "abc")
