import unittest
from datetime import date

from pharmastock.core.forecast import (
    BatchStock,
    classify_supply,
    forecast_batches,
    forecast_medicine,
    group_by_medicine,
)

TODAY = date(2026, 10, 19)


class ForecastBatchesTest(unittest.TestCase):
    def test_single_batch_far_expiry_lasts_by_stock(self):
        months, batches = forecast_batches(
            [BatchStock(item_id=1, current_stock=120, expiry_date="12-2030")], 30, today=TODAY
        )
        self.assertEqual(months, 4)
        self.assertEqual(batches[0].consumption_percentage, 100)

    def test_single_batch_without_expiry(self):
        months, batches = forecast_batches([BatchStock(item_id=1, current_stock=120)], 30, today=TODAY)
        self.assertEqual(months, 4)
        self.assertIsNone(batches[0].months_until_expiry)
        self.assertEqual(batches[0].consumption_percentage, 100)

    def test_expiry_cliff_caps_months(self):
        months, batches = forecast_batches(
            [BatchStock(item_id=1, current_stock=120, expiry_date="12-2026")], 30, today=TODAY
        )
        self.assertEqual(batches[0].months_until_expiry, 2)
        self.assertEqual(batches[0].consumption_percentage, 50)
        self.assertEqual(months, 2)

    def test_all_expired(self):
        months, batches = forecast_batches(
            [
                BatchStock(item_id=1, current_stock=40, expiry_date="09-2026"),
                BatchStock(item_id=2, current_stock=10, expiry_date="01-2025"),
            ],
            30,
            today=TODAY,
        )
        self.assertEqual(months, 0)
        self.assertEqual([b.consumption_percentage for b in batches], [0, 0])
        self.assertTrue(all(b.expired for b in batches))

    def test_current_month_is_not_expired(self):
        months, batches = forecast_batches(
            [BatchStock(item_id=1, current_stock=40, expiry_date="10-2026")], 30, today=TODAY
        )
        self.assertFalse(batches[0].expired)
        self.assertEqual(batches[0].months_until_expiry, 0)
        self.assertEqual(batches[0].consumption_percentage, 0)
        self.assertEqual(months, 0)

    def test_zero_consumption_has_no_forecast(self):
        months, batches = forecast_batches(
            [BatchStock(item_id=1, current_stock=50, expiry_date="12-2030")], 0, today=TODAY
        )
        self.assertIsNone(months)
        self.assertIsNone(batches[0].consumption_percentage)

    def test_zero_usable_stock_has_no_forecast(self):
        months, _ = forecast_batches(
            [BatchStock(item_id=1, current_stock=0, expiry_date="12-2030")], 10, today=TODAY
        )
        self.assertIsNone(months)

    def test_multi_batch_rollover(self):
        months, batches = forecast_batches(
            [
                BatchStock(item_id=2, current_stock=100, expiry_date="10-2027"),
                BatchStock(item_id=1, current_stock=10, expiry_date="11-2026"),
            ],
            20,
            today=TODAY,
        )
        by_id = {b.item_id: b for b in batches}
        self.assertEqual(by_id[1].months_until_expiry, 1)
        self.assertEqual(by_id[1].consumption_percentage, 0)
        self.assertEqual(by_id[2].months_until_expiry, 12)
        self.assertEqual(by_id[2].consumption_percentage, 100)
        self.assertEqual(months, 5)
        # input order is preserved
        self.assertEqual([b.item_id for b in batches], [2, 1])

    def test_walk_stops_before_later_batches(self):
        months, batches = forecast_batches(
            [
                BatchStock(item_id=1, current_stock=120, expiry_date="12-2026"),
                BatchStock(item_id=2, current_stock=60, expiry_date="06-2027"),
            ],
            30,
            today=TODAY,
        )
        self.assertEqual(months, 2)
        self.assertEqual(batches[0].consumption_percentage, 50)
        self.assertIsNone(batches[1].consumption_percentage)

    def test_surplus_rolls_into_next_batch(self):
        months, batches = forecast_batches(
            [
                BatchStock(item_id=1, current_stock=50, expiry_date="04-2027"),
                BatchStock(item_id=2, current_stock=40, expiry_date="12-2027"),
            ],
            20,
            today=TODAY,
        )
        # first batch: 50 units, 6 months to expiry, lasts 2 -> 40 consumed, 10 roll over
        self.assertEqual(batches[0].consumption_percentage, 80)
        # second batch: 10 + 40 = 50 units, lasts 2 months
        self.assertEqual(batches[1].consumption_percentage, 100)
        self.assertEqual(months, 4)

    def test_expired_batches_are_skipped_in_mixed_group(self):
        months, batches = forecast_batches(
            [
                BatchStock(item_id=1, current_stock=500, expiry_date="08-2026"),
                BatchStock(item_id=2, current_stock=90, expiry_date="12-2030"),
            ],
            30,
            today=TODAY,
        )
        self.assertEqual(months, 3)
        self.assertEqual(batches[0].consumption_percentage, 0)
        self.assertTrue(batches[0].expired)
        self.assertEqual(batches[1].consumption_percentage, 100)

    def test_percentage_rounds_half_up(self):
        # 1 month to expiry, consumes 1 of 8 units -> 12.5% -> 13
        _, batches = forecast_batches(
            [BatchStock(item_id=1, current_stock=8, expiry_date="11-2026")], 1, today=TODAY
        )
        self.assertEqual(batches[0].consumption_percentage, 13)

    def test_negative_consumption_rejected(self):
        with self.assertRaises(ValueError):
            forecast_batches([BatchStock(item_id=1, current_stock=1)], -1, today=TODAY)

    def test_empty_group(self):
        self.assertEqual(forecast_batches([], 10, today=TODAY), (None, []))


class ClassificationTest(unittest.TestCase):
    def test_bands(self):
        cases = [
            (0, 10, "out_of_stock"),
            (0, None, "out_of_stock"),
            (10, None, "in_stock"),
            (10, 0, "critical"),
            (10, 3, "critical"),
            (10, 4, "low"),
            (10, 6, "low"),
            (10, 7, "ok"),
        ]
        for stock, months, expected in cases:
            with self.subTest(stock=stock, months=months):
                self.assertEqual(classify_supply(stock, months), expected)

    def test_forecast_medicine_summarises_group(self):
        result = forecast_medicine(
            "Amoxicillin",
            [
                BatchStock(item_id=1, current_stock=30, expiry_date="01-2031", form="CAPSULE"),
                BatchStock(item_id=2, current_stock=30, form="TABLET"),
            ],
            20,
            today=TODAY,
        )
        self.assertEqual(result.total_stock, 60)
        self.assertEqual(result.usable_stock, 60)
        self.assertEqual(result.forecast_months, 3)
        self.assertEqual(result.status, "critical")

    def test_expired_units_do_not_count_as_supply(self):
        with_empty_batch = forecast_medicine(
            "Metoprolol",
            [
                BatchStock(item_id=1, current_stock=50, expiry_date="01-2026"),
                BatchStock(item_id=2, current_stock=0, expiry_date="12-2030"),
            ],
            10,
            today=TODAY,
        )
        self.assertEqual(with_empty_batch.total_stock, 50)
        self.assertEqual(with_empty_batch.usable_stock, 0)
        self.assertIsNone(with_empty_batch.forecast_months)
        self.assertEqual(with_empty_batch.status, "out_of_stock")

        only_expired = forecast_medicine(
            "Metoprolol",
            [BatchStock(item_id=1, current_stock=50, expiry_date="01-2026")],
            10,
            today=TODAY,
        )
        self.assertEqual(only_expired.forecast_months, 0)
        self.assertEqual(only_expired.status, "out_of_stock")

    def test_group_by_medicine(self):
        groups = group_by_medicine(
            [
                ("A", BatchStock(item_id=1, current_stock=1)),
                ("B", BatchStock(item_id=2, current_stock=2)),
                ("A", BatchStock(item_id=3, current_stock=3)),
            ]
        )
        self.assertEqual([b.item_id for b in groups["A"]], [1, 3])
        self.assertEqual(len(groups["B"]), 1)


if __name__ == "__main__":
    unittest.main()
