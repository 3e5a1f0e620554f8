import unittest
from fastapi.testclient import TestClient

from app import app


class TestHealthAPI(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()

    def test_health_ok(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"ok": True})

    def test_routes_registered(self):
        paths = self.client.get("/openapi.json").json()["paths"]
        for path in (
            "/projects/{project_id}/invoices",
            "/projects/{project_id}/invoices/summary",
            "/projects/{project_id}/invoices/export.csv",
            "/invoices/{invoice_id}",
            "/projects/{project_id}/vouchers",
            "/projects/{project_id}/vouchers/available",
            "/projects/{project_id}/vouchers/selection",
            "/vouchers/{voucher_id}",
        ):
            self.assertIn(path, paths)


if __name__ == "__main__":
    unittest.main()
