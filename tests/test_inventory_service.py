import unittest
from datetime import date, datetime, timezone

from pharmastock.core.constants import ReasonCode, SnapshotSortField, SortOrder
from pharmastock.schemas.inventory import LogQuery, SnapshotQuery
from pharmastock.services import inventory_service, stock_ledger
from pharmastock.services.forecast_service import medicine_forecasts
from tests.support import make_item, make_sessionmaker

TODAY = date(2026, 10, 19)


class InventoryServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_sessionmaker()
        self.db = Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _backdate(self, log, when):
        log.created_at = when
        self.db.commit()


class SnapshotTest(InventoryServiceTestCase):
    def setUp(self):
        super().setUp()
        self.ibuprofen = make_item(self.db, name="Ibuprofen", expiry_date="03-2027", stock=40)
        self.amox_caps = make_item(self.db, name="Amoxicillin", form="CAPSULE", expiry_date="09-2026", stock=15)
        self.amox_tabs = make_item(self.db, name="Amoxicillin", form="TABLET", stock=70)
        self.retired = make_item(self.db, name="Cortisone", form="CREAM", stock=3)
        stock_ledger.deactivate(self.db, self.retired.id)

    def test_active_rows_sorted_by_name(self):
        rows = inventory_service.stock_snapshot(self.db, today=TODAY)
        self.assertEqual(
            [row["item_id"] for row in rows],
            [self.amox_caps.id, self.amox_tabs.id, self.ibuprofen.id],
        )
        by_id = {row["item_id"]: row for row in rows}
        self.assertEqual(by_id[self.amox_caps.id]["expiry_status"], "expired")
        self.assertEqual(by_id[self.amox_tabs.id]["expiry_status"], "unknown")
        self.assertEqual(by_id[self.ibuprofen.id]["expiry_status"], "expiring")
        self.assertEqual(by_id[self.ibuprofen.id]["current_stock"], 40)

    def test_sort_by_stock_descending(self):
        rows = inventory_service.stock_snapshot(
            self.db,
            SnapshotQuery(sort_by=SnapshotSortField.STOCK, sort_order=SortOrder.DESC),
            today=TODAY,
        )
        self.assertEqual([row["current_stock"] for row in rows], [70, 40, 15])

    def test_sort_by_expiry_puts_undated_last(self):
        rows = inventory_service.stock_snapshot(
            self.db, SnapshotQuery(sort_by=SnapshotSortField.EXPIRY_DATE), today=TODAY
        )
        self.assertEqual([row["expiry_date"] for row in rows], ["09-2026", "03-2027", None])

    def test_name_filter_and_inactive(self):
        rows = inventory_service.stock_snapshot(
            self.db, SnapshotQuery(name="cort", include_inactive=True), today=TODAY
        )
        self.assertEqual(len(rows), 1)
        self.assertFalse(rows[0]["is_active"])
        self.assertEqual(inventory_service.stock_snapshot(self.db, SnapshotQuery(name="cort")), [])

    def test_summary_counts_active_stock(self):
        summary = inventory_service.inventory_summary(self.db)
        self.assertEqual(summary["total_items"], 3)
        self.assertEqual(summary["total_inventory"], 125)
        self.assertEqual(len(summary["recent_movements"]), 4)
        self.assertEqual(summary["recent_movements"][0].item_id, self.retired.id)


class LogQueryTest(InventoryServiceTestCase):
    def setUp(self):
        super().setUp()
        self.item = make_item(self.db, stock=100)
        self.other = make_item(self.db, name="Aspirin", stock=10)
        for _ in range(3):
            stock_ledger.apply_adjustment(self.db, self.item.id, -2, ReasonCode.DISPENSATION, actor_id="u")
        old = stock_ledger.apply_adjustment(self.db, self.item.id, -1, ReasonCode.EXPIRED, actor_id="u")
        self._backdate(old, datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc))

    def test_filter_by_item_and_reason(self):
        logs, total = inventory_service.list_logs(
            self.db, LogQuery(item_id=self.item.id, reason=ReasonCode.DISPENSATION)
        )
        self.assertEqual(total, 3)
        self.assertTrue(all(log.reason == "DISPENSATION" for log in logs))

    def test_pagination(self):
        logs, total = inventory_service.list_logs(self.db, LogQuery(item_id=self.item.id, page=2, limit=2))
        self.assertEqual(total, 5)
        self.assertEqual(len(logs), 2)
        self.assertEqual(inventory_service.page_count(total, 2), 3)

    def test_date_range_is_inclusive(self):
        logs, total = inventory_service.list_logs(
            self.db, LogQuery(date_from=date(2026, 1, 10), date_to=date(2026, 1, 10))
        )
        self.assertEqual(total, 1)
        self.assertEqual(logs[0].reason, "EXPIRED")

    def test_search_matches_item_and_patient_fields(self):
        stock_ledger.apply_adjustment(
            self.db,
            self.other.id,
            -1,
            ReasonCode.DISPENSATION,
            actor_id="u",
            provenance={"patient_name": "Jane Roe", "patient_id": "P-77", "prescription_number": "RX-2024-9"},
        )
        cases = [("jane", 1), ("p-77", 1), ("rx-2024", 1), ("ASPIRIN", 2), ("paracet", 5), ("  ", 7), ("zzz", 0)]
        for search, expected in cases:
            with self.subTest(search=search):
                _, total = inventory_service.list_logs(self.db, LogQuery(search=search))
                self.assertEqual(total, expected)

    def test_ascending_order(self):
        logs, _ = inventory_service.list_logs(self.db, LogQuery(sort_order=SortOrder.ASC, limit=50))
        self.assertEqual(logs[0].reason, "EXPIRED")


class MonthlyConsumptionTest(InventoryServiceTestCase):
    def test_counts_dispensations_and_losses_only(self):
        now = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)
        tablets = make_item(self.db, name="Metformin", stock=500)
        syrup = make_item(self.db, name="Metformin", form="POWDER", stock=100)

        entries = [
            (tablets.id, -40, ReasonCode.DISPENSATION, now),
            (syrup.id, -10, ReasonCode.DISPENSATION, now),
            (tablets.id, -5, ReasonCode.ADJUSTMENT, now),
            (tablets.id, 8, ReasonCode.ADJUSTMENT, now),
            (tablets.id, -20, ReasonCode.DAMAGED, now),
            (tablets.id, -7, ReasonCode.TRANSFER, now),
            (tablets.id, -90, ReasonCode.DISPENSATION, datetime(2026, 9, 1, tzinfo=timezone.utc)),
        ]
        for item_id, delta, reason, when in entries:
            log = stock_ledger.apply_adjustment(self.db, item_id, delta, reason, actor_id="u")
            self._backdate(log, when)

        totals = inventory_service.monthly_consumption(self.db, today=TODAY)
        self.assertEqual(totals, {"Metformin": 55})

    def test_window_starts_one_calendar_month_back(self):
        start, end = inventory_service.consumption_window(date(2026, 3, 31))
        self.assertEqual(start, datetime(2026, 2, 28, tzinfo=timezone.utc))
        self.assertEqual(end, datetime(2026, 4, 1, tzinfo=timezone.utc))

    def test_consumed_units(self):
        self.assertEqual(inventory_service.consumed_units(-4, "DISPENSATION"), 4)
        self.assertEqual(inventory_service.consumed_units(-4, "ADJUSTMENT"), 4)
        self.assertEqual(inventory_service.consumed_units(4, "ADJUSTMENT"), 0)
        self.assertEqual(inventory_service.consumed_units(-4, "EXPIRED"), 0)


class ForecastServiceTest(InventoryServiceTestCase):
    def test_forecast_groups_batches_by_name(self):
        now = datetime(2026, 10, 10, tzinfo=timezone.utc)
        short = make_item(self.db, name="Insulin", form="GEL", expiry_date="11-2026", stock=10)
        long = make_item(self.db, name="Insulin", form="GEL", expiry_date="10-2027", stock=120)
        spent = stock_ledger.apply_adjustment(self.db, long.id, -20, ReasonCode.DISPENSATION, actor_id="u")
        self._backdate(spent, now)
        make_item(self.db, name="Zinc", form="POWDER", stock=30)

        forecasts = medicine_forecasts(self.db, today=TODAY)
        self.assertEqual([f.name for f in forecasts], ["Insulin", "Zinc"])

        insulin = forecasts[0]
        self.assertEqual(insulin.monthly_consumption, 20)
        self.assertEqual(insulin.total_stock, 110)
        self.assertEqual(insulin.forecast_months, 5)
        self.assertEqual(insulin.status, "low")
        by_id = {batch.item_id: batch for batch in insulin.batches}
        self.assertEqual(by_id[short.id].consumption_percentage, 0)
        self.assertEqual(by_id[long.id].consumption_percentage, 100)

        zinc = forecasts[1]
        self.assertIsNone(zinc.forecast_months)
        self.assertEqual(zinc.status, "in_stock")

    def test_exact_name_lookup(self):
        make_item(self.db, name="Vitamin D", stock=5)
        make_item(self.db, name="Vitamin D3", stock=5)
        forecasts = medicine_forecasts(self.db, name="Vitamin D", exact=True, today=TODAY)
        self.assertEqual([f.name for f in forecasts], ["Vitamin D"])


if __name__ == "__main__":
    unittest.main()
