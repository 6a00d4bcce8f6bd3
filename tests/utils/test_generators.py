import uuid6

from django.test import SimpleTestCase

from api_sessions.utils.generators import generate_flight_id


class TestFlightIdentifier(SimpleTestCase):
    def test_returns_correct_uuid_type(self):
        """Ensure the generated ID is a valid uuid6.UUID instance."""
        flight_id = generate_flight_id()
        self.assertIsInstance(flight_id, uuid6.UUID)
        self.assertEqual(flight_id.version, 7)

    def test_ids_are_unique(self):
        id_one = generate_flight_id()
        id_two = generate_flight_id()
        self.assertNotEqual(id_one, id_two)

    def test_ids_are_chronologically_ordered(self):
        """Confirm UUID v7 property: later IDs are greater than earlier IDs."""
        id_early = generate_flight_id()
        id_later = generate_flight_id()
        self.assertLess(id_early, id_later)
