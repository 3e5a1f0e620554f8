import unittest
from datetime import date, datetime
from types import SimpleNamespace

from schemas.voucher import VoucherOut
from services.aggregation import (
    is_due_soon,
    is_overdue,
    sort_invoices,
    summarize,
    summarize_vouchers,
)


def _inv(id, status="pending", due=date(2025, 1, 10), ht=100.0, ttc=107.7, paid=None, supplier="A", number=None):
    return SimpleNamespace(
        id=id,
        number=number or id,
        supplier=supplier,
        status=status,
        due_date=due,
        amount_ht=ht,
        amount_ttc=ttc,
        payment_date=paid,
    )


class TestDueDates(unittest.TestCase):
    def test_overdue_only_after_due_day(self):
        inv = _inv("I1", due=date(2025, 1, 10))
        self.assertFalse(is_overdue(inv, date(2025, 1, 10)))
        self.assertTrue(is_overdue(inv, date(2025, 1, 11)))

    def test_time_of_day_ignored(self):
        inv = _inv("I1", due=date(2025, 1, 10))
        self.assertFalse(is_overdue(inv, datetime(2025, 1, 10, 23, 59)))

    def test_paid_invoice_never_overdue_nor_due_soon(self):
        inv = _inv("I1", due=date(2025, 1, 1), paid=date(2025, 1, 20))
        self.assertFalse(is_overdue(inv, date(2025, 2, 1)))
        self.assertFalse(is_due_soon(inv, date(2024, 12, 30)))

    def test_due_soon_window_inclusive(self):
        now = date(2025, 1, 1)
        self.assertTrue(is_due_soon(_inv("a", due=date(2025, 1, 1)), now))
        self.assertTrue(is_due_soon(_inv("b", due=date(2025, 1, 8)), now))
        self.assertFalse(is_due_soon(_inv("c", due=date(2025, 1, 9)), now))
        self.assertFalse(is_due_soon(_inv("d", due=date(2024, 12, 31)), now))

    def test_due_soon_custom_window(self):
        inv = _inv("a", due=date(2025, 1, 4))
        self.assertFalse(is_due_soon(inv, date(2025, 1, 1), days=2))
        self.assertTrue(is_due_soon(inv, date(2025, 1, 1), days=3))


class TestSummarize(unittest.TestCase):
    def test_counts_and_totals(self):
        invoices = [
            _inv("I1", status="pending", due=date(2025, 1, 5), ht=100, ttc=107.7),
            _inv("I2", status="validated", due=date(2025, 1, 12), ht=200, ttc=215.4),
            _inv("I3", status="validated", due=date(2025, 1, 1), ht=50, ttc=53.85, paid=date(2025, 1, 2)),
            _inv("I4", status="rejected", due=date(2025, 3, 1), ht=0, ttc=0),
        ]
        s = summarize(invoices, date(2025, 1, 10))

        self.assertEqual(s.total, 4)
        self.assertEqual(s.amount_ht, 350.0)
        self.assertEqual(s.amount_ttc, 376.95)
        self.assertEqual(s.by_status, {"draft": 0, "pending": 1, "validated": 2, "rejected": 1})
        self.assertEqual(sum(s.by_status.values()), s.total)
        self.assertEqual(s.paid_count, 1)
        self.assertEqual(s.unpaid_count, 3)
        self.assertEqual(s.overdue_count, 1)
        self.assertEqual(s.due_soon_count, 1)

    def test_empty(self):
        s = summarize([], date(2025, 1, 10))
        self.assertEqual(s.total, 0)
        self.assertEqual(s.amount_ht, 0.0)
        self.assertEqual(s.by_status, {"draft": 0, "pending": 0, "validated": 0, "rejected": 0})

    def test_paying_overdue_invoice_moves_it_to_paid(self):
        inv = _inv("I1", due=date(2025, 1, 1))
        now = date(2025, 1, 10)

        before = summarize([inv], now)
        inv.payment_date = date(2025, 1, 9)
        after = summarize([inv], now)

        self.assertEqual((before.overdue_count, before.paid_count), (1, 0))
        self.assertEqual((after.overdue_count, after.paid_count), (0, 1))

    def test_summary_moves_with_now(self):
        invoices = [_inv("I1", due=date(2025, 1, 10))]
        self.assertEqual(summarize(invoices, date(2025, 1, 10)).overdue_count, 0)
        self.assertEqual(summarize(invoices, date(2025, 1, 11)).overdue_count, 1)


class TestSortInvoices(unittest.TestCase):
    def test_ascending_and_reverse(self):
        invoices = [_inv("a", ht=300), _inv("b", ht=100), _inv("c", ht=200)]

        asc = [i.id for i in sort_invoices(invoices, "amount_ht")]
        desc = [i.id for i in sort_invoices(invoices, "amount_ht", descending=True)]

        self.assertEqual(asc, ["b", "c", "a"])
        self.assertEqual(desc, ["a", "c", "b"])

    def test_stable_on_equal_keys(self):
        invoices = [_inv("a", supplier="X"), _inv("b", supplier="X"), _inv("c", supplier="W")]
        self.assertEqual([i.id for i in sort_invoices(invoices, "supplier")], ["c", "a", "b"])
        self.assertEqual([i.id for i in sort_invoices(invoices, "supplier", descending=True)], ["a", "b", "c"])

    def test_missing_values_last_when_ascending(self):
        invoices = [_inv("a", paid=None), _inv("b", paid=date(2025, 1, 5)), _inv("c", paid=date(2025, 1, 2))]
        self.assertEqual([i.id for i in sort_invoices(invoices, "payment_date")], ["c", "b", "a"])

    def test_multi_field(self):
        invoices = [
            _inv("a", supplier="B", ht=1),
            _inv("b", supplier="A", ht=2),
            _inv("c", supplier="A", ht=1),
        ]
        self.assertEqual([i.id for i in sort_invoices(invoices, ["supplier", "amount_ht"])], ["c", "b", "a"])

    def test_input_not_mutated(self):
        invoices = [_inv("a", ht=2), _inv("b", ht=1)]
        sort_invoices(invoices, "amount_ht")
        self.assertEqual([i.id for i in invoices], ["a", "b"])


class TestSummarizeVouchers(unittest.TestCase):
    def test_counts(self):
        vouchers = [
            VoucherOut(id="V1", type="delivery", quantity=10, unit_price=5, status="validated", invoice_id="I1"),
            VoucherOut(id="V2", type="concrete", quantity=2, unit_price=25, status="validated"),
            VoucherOut(id="V3", type="delivery", quantity=4, status="pending"),
        ]
        s = summarize_vouchers(vouchers)

        self.assertEqual(s.total, 3)
        self.assertEqual(s.total_amount, 100.0)
        self.assertEqual(s.by_type, {"delivery": 2, "evacuation": 0, "concrete": 1, "materials": 0})
        self.assertEqual(s.by_status["validated"], 2)
        self.assertEqual(s.invoiced_count, 1)
        self.assertEqual(s.available_count, 2)


if __name__ == "__main__":
    unittest.main()
