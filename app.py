from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging import setup_logging
from db.session import engine
from models.base import Base

# Import all models to register them with SQLAlchemy BEFORE any queries
from models.invoice import Invoice, InvoiceDocument, VoucherInvoiceLink
from models.voucher import Voucher

from controllers.health import router as health_router
from controllers.invoices import router as invoices_router
from controllers.vouchers import router as vouchers_router


setup_logging()

app = FastAPI(title="Site Invoices (voucher reconciliation)")

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- DB tables ---
Base.metadata.create_all(bind=engine)

# --- Routers ---
app.include_router(health_router)
app.include_router(invoices_router)
app.include_router(vouchers_router)
