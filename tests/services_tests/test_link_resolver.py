import unittest

from core.exceptions import NotFound, ValidationError
from schemas.invoice import VoucherLinkIn
from schemas.voucher import VoucherOut
from services.link_resolver import (
    apply_selection,
    attach,
    detach,
    resolve_snapshots,
    snapshot_amount,
    total_of,
)


def _voucher(id, qty=10, price=5.0, invoice_id=None, project_id="P1"):
    return VoucherOut(
        id=id, project_id=project_id, type="delivery", quantity=qty, unit_price=price, invoice_id=invoice_id
    )


class FakeLedger:
    def __init__(self, *vouchers):
        self.vouchers = {v.id: v for v in vouchers}
        self.calls = []

    def get_voucher(self, voucher_id):
        self.calls.append(voucher_id)
        if voucher_id not in self.vouchers:
            raise NotFound("Voucher", voucher_id)
        return self.vouchers[voucher_id]


class TestAttachDetach(unittest.TestCase):
    def test_snapshot_amount(self):
        self.assertEqual(snapshot_amount(_voucher("V1", qty=3, price=12.5)), 37.5)
        self.assertEqual(snapshot_amount(_voucher("V2", qty=4, price=None)), 0.0)

    def test_attach_appends_snapshot(self):
        links = attach([], _voucher("V1"))
        self.assertEqual(links, [VoucherLinkIn(voucher_id="V1", amount=50.0)])

    def test_attach_twice_is_noop(self):
        links = attach([], _voucher("V1"))
        again = attach(links, _voucher("V1", price=99))
        self.assertEqual(again, links)
        self.assertIsNot(again, links)

    def test_detach_missing_is_noop(self):
        links = [VoucherLinkIn(voucher_id="V1", amount=50)]
        self.assertEqual(detach(links, "V9"), links)
        self.assertEqual(detach(links, "V1"), [])

    def test_total_rounds_to_cents(self):
        links = [VoucherLinkIn(voucher_id="a", amount=0.1), VoucherLinkIn(voucher_id="b", amount=0.2)]
        self.assertEqual(total_of(links), 0.3)
        self.assertEqual(total_of([]), 0.0)


class TestResolveSnapshots(unittest.TestCase):
    def test_persisted_snapshot_wins_over_live_price(self):
        ledger = FakeLedger(_voucher("V1", price=99), _voucher("V2", qty=2, price=7))
        draft = [VoucherLinkIn(voucher_id="V1"), VoucherLinkIn(voucher_id="V2")]

        links = resolve_snapshots(draft, {"V1": 40.0}, ledger, "P1")

        self.assertEqual([(link.voucher_id, link.amount) for link in links], [("V1", 40.0), ("V2", 14.0)])
        self.assertEqual(ledger.calls, ["V2"])

    def test_matching_draft_amount_accepted(self):
        links = resolve_snapshots([VoucherLinkIn(voucher_id="V1", amount=50.004)], {}, FakeLedger(_voucher("V1")), "P1")
        self.assertEqual(links, [VoucherLinkIn(voucher_id="V1", amount=50.0)])

    def test_mismatching_draft_amount_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            resolve_snapshots([VoucherLinkIn(voucher_id="V1", amount=999)], {}, FakeLedger(_voucher("V1")), "P1")
        self.assertEqual(set(ctx.exception.errors), {"links[0]"})

        with self.assertRaises(ValidationError):
            resolve_snapshots([VoucherLinkIn(voucher_id="V1", amount=1)], {"V1": 50.0}, FakeLedger(), "P1")

    def test_duplicates_dropped_first_wins(self):
        ledger = FakeLedger(_voucher("V1"))
        draft = [VoucherLinkIn(voucher_id="V1", amount=50), VoucherLinkIn(voucher_id="V1", amount=2)]

        links = resolve_snapshots(draft, {}, ledger, "P1")
        self.assertEqual(links, [VoucherLinkIn(voucher_id="V1", amount=50.0)])

    def test_unknown_voucher_rejected(self):
        draft = [VoucherLinkIn(voucher_id="V1"), VoucherLinkIn(voucher_id="NOPE", amount=10)]

        with self.assertRaises(ValidationError) as ctx:
            resolve_snapshots(draft, {}, FakeLedger(_voucher("V1")), "P1")
        self.assertEqual(set(ctx.exception.errors), {"links[1]"})

    def test_voucher_of_other_project_rejected(self):
        ledger = FakeLedger(_voucher("VX", project_id="OTHER"))

        with self.assertRaises(ValidationError) as ctx:
            resolve_snapshots([VoucherLinkIn(voucher_id="VX")], {}, ledger, "P1")
        self.assertIn("another project", ctx.exception.errors["links[0]"])


class TestApplySelection(unittest.TestCase):
    def test_detach_then_attach(self):
        links = [VoucherLinkIn(voucher_id="V1", amount=50)]
        result, ignored = apply_selection(links, [_voucher("V2", qty=1, price=10)], ["V1"])

        self.assertEqual([link.voucher_id for link in result], ["V2"])
        self.assertEqual(ignored, [])
        self.assertEqual(links, [VoucherLinkIn(voucher_id="V1", amount=50)])

    def test_voucher_held_elsewhere_ignored(self):
        result, ignored = apply_selection([], [_voucher("V1", invoice_id="OTHER"), _voucher("V2")], [])
        self.assertEqual([link.voucher_id for link in result], ["V2"])
        self.assertEqual(ignored, ["V1"])

    def test_own_invoice_may_reattach(self):
        result, ignored = apply_selection([], [_voucher("V1", invoice_id="I1")], [], invoice_id="I1")
        self.assertEqual([link.voucher_id for link in result], ["V1"])
        self.assertEqual(ignored, [])


if __name__ == "__main__":
    unittest.main()
