import httpx

from django.test import SimpleTestCase, override_settings

from api_sessions.utils.payloads import (
    read_json,
    camelize_key,
    camelize_keys,
    unwrap_envelope,
    extract_error_message,
)


class ReadJsonTests(SimpleTestCase):
    def test_json_body(self):
        self.assertEqual(read_json(httpx.Response(200, json={"a": 1})), {"a": 1})

    def test_empty_or_invalid_body(self):
        self.assertIsNone(read_json(httpx.Response(204)))
        self.assertIsNone(read_json(httpx.Response(502, text="<html>Bad gateway</html>")))


class UnwrapEnvelopeTests(SimpleTestCase):
    def test_unwraps_data(self):
        payload = {"success": True, "message": "OK", "data": {"id": 1}}
        self.assertEqual(unwrap_envelope(payload), {"id": 1})

    def test_bare_payload_is_returned(self):
        self.assertEqual(unwrap_envelope({"id": 1}), {"id": 1})
        self.assertIsNone(unwrap_envelope(None))

    def test_non_dict_data_is_not_unwrapped(self):
        payload = {"success": True, "data": None}
        self.assertEqual(unwrap_envelope(payload), payload)

    @override_settings(
        API_SESSIONS={
            "BASE_URL": "https://api.herhomes.test",
            "UNWRAP_RESPONSE_ENVELOPE": False,
        }
    )
    def test_unwrapping_can_be_disabled(self):
        payload = {"data": {"id": 1}}
        self.assertEqual(unwrap_envelope(payload), payload)


class ExtractErrorMessageTests(SimpleTestCase):
    def test_message_field(self):
        response = httpx.Response(400, json={"message": "Email already registered"})
        self.assertEqual(extract_error_message(response), "Email already registered")

    def test_message_list(self):
        response = httpx.Response(400, json={"message": ["email is invalid", "", "x"]})
        self.assertEqual(extract_error_message(response), "email is invalid; x")

    def test_default_message(self):
        response = httpx.Response(400, json={"success": False})
        self.assertEqual(extract_error_message(response, default="Failed"), "Failed")

    def test_reason_phrase_fallback(self):
        self.assertEqual(extract_error_message(httpx.Response(404)), "Not Found")


class CamelizeTests(SimpleTestCase):
    def test_camelize_key(self):
        self.assertEqual(camelize_key("email"), "email")
        self.assertEqual(camelize_key("date_of_birth"), "dateOfBirth")

    def test_camelize_keys(self):
        self.assertEqual(
            camelize_keys({"first_name": "Ada", "role": "applicant"}),
            {"firstName": "Ada", "role": "applicant"},
        )
