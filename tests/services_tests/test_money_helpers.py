import unittest
from datetime import date, datetime

from helpers import as_date, compute_amount_ttc, format_amount, format_date_fr, round2


class TestMoneyHelpers(unittest.TestCase):
    def test_round2_half_up(self):
        self.assertEqual(round2(1.005), 1.01)
        self.assertEqual(round2(2.675), 2.68)
        self.assertEqual(round2(-1.005), -1.01)
        self.assertEqual(round2(None), 0.0)

    def test_amount_ttc(self):
        self.assertEqual(compute_amount_ttc(1000, 7.7), 1077.0)
        self.assertEqual(compute_amount_ttc(200, 8.1), 216.2)
        self.assertEqual(compute_amount_ttc(33.33, 7.7), 35.9)
        self.assertEqual(compute_amount_ttc(100, 0), 100.0)
        self.assertEqual(compute_amount_ttc(0, 7.7), 0.0)

    def test_format_amount(self):
        self.assertEqual(format_amount(5), "5.00")
        self.assertEqual(format_amount(538.5), "538.50")
        self.assertEqual(format_amount(None), "0.00")


class TestDateHelpers(unittest.TestCase):
    def test_as_date(self):
        self.assertEqual(as_date(datetime(2025, 1, 10, 23, 59)), date(2025, 1, 10))
        self.assertEqual(as_date(date(2025, 1, 10)), date(2025, 1, 10))

    def test_format_date_fr(self):
        self.assertEqual(format_date_fr(date(2025, 1, 2)), "02/01/2025")
        self.assertEqual(format_date_fr(None), "")


if __name__ == "__main__":
    unittest.main()
