import unittest
from datetime import date

from pharmastock.core.dates import (
    add_months,
    expiry_status,
    is_expired,
    months_between,
    normalize_expiry,
    parse_expiry,
)


class ExpiryParsingTest(unittest.TestCase):
    def test_parse_expiry(self):
        self.assertEqual(parse_expiry("03-2027"), date(2027, 3, 1))
        self.assertIsNone(parse_expiry(None))
        self.assertIsNone(parse_expiry("  "))

    def test_rejects_malformed_expiry(self):
        for value in ("3-2027", "13-2027", "00-2027", "2027-03", "03/2027", "03-27"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_expiry(value)

    def test_normalize_strips_whitespace(self):
        self.assertEqual(normalize_expiry(" 09-2028 "), "09-2028")


class MonthArithmeticTest(unittest.TestCase):
    def test_months_between_ignores_day(self):
        self.assertEqual(months_between(date(2026, 10, 31), date(2026, 12, 1)), 2)
        self.assertEqual(months_between(date(2026, 10, 1), date(2026, 9, 1)), -1)

    def test_add_months_clamps_day(self):
        self.assertEqual(add_months(date(2026, 3, 31), -1), date(2026, 2, 28))
        self.assertEqual(add_months(date(2026, 1, 15), -1), date(2025, 12, 15))
        self.assertEqual(add_months(date(2026, 11, 30), 3), date(2027, 2, 28))


class ExpiryStatusTest(unittest.TestCase):
    def test_statuses(self):
        today = date(2026, 10, 19)
        self.assertEqual(expiry_status(None, today), "unknown")
        self.assertEqual(expiry_status("09-2026", today), "expired")
        self.assertEqual(expiry_status("10-2026", today), "expiring")
        self.assertEqual(expiry_status("03-2027", today), "expiring")
        self.assertEqual(expiry_status("04-2027", today), "good")

    def test_is_expired_uses_month_granularity(self):
        today = date(2026, 10, 31)
        self.assertFalse(is_expired("10-2026", today))
        self.assertTrue(is_expired("09-2026", today))
        self.assertFalse(is_expired(None, today))


if __name__ == "__main__":
    unittest.main()
