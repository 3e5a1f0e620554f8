import uuid

from sqlalchemy import Column, Integer, String, Date, DateTime, Float, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base import Base


def gen_id() -> str:
    return str(uuid.uuid4())


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("project_id", "number", name="uq_invoice_project_number"),
    )

    id = Column(String(36), primary_key=True, default=gen_id)
    project_id = Column(String(64), index=True, nullable=False)

    number = Column(String(140), nullable=False)
    reference = Column(String(255), nullable=True)
    supplier = Column(String(255), index=True, nullable=False)

    date = Column(Date, index=True, nullable=False)
    due_date = Column(Date, index=True, nullable=False)

    amount_ht = Column(Float, nullable=False, default=0.0)
    vat_rate = Column(Float, nullable=False, default=0.0)
    amount_ttc = Column(Float, nullable=False, default=0.0)  # derived, see helpers.compute_amount_ttc

    status = Column(String(16), index=True, nullable=False, default="draft")

    payment_date = Column(Date, nullable=True)
    payment_reference = Column(String(255), nullable=True)

    validated_by = Column(String(64), nullable=True)
    validated_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    documents = relationship(
        "InvoiceDocument",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceDocument.position",
    )
    links = relationship(
        "VoucherInvoiceLink",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="VoucherInvoiceLink.position",
    )


class InvoiceDocument(Base):
    __tablename__ = "invoice_documents"

    id = Column(String(36), primary_key=True, default=gen_id)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(255), nullable=False)
    media_type = Column(String(127), nullable=True)
    url = Column(Text, nullable=True)
    locator = Column(String(512), nullable=True)  # storage key, used for deletion

    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(64), nullable=True)

    invoice = relationship("Invoice", back_populates="documents")


class VoucherInvoiceLink(Base):
    __tablename__ = "voucher_invoice_links"

    id = Column(String(36), primary_key=True, default=gen_id)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # one active link per voucher, system-wide
    voucher_id = Column(String(64), unique=True, index=True, nullable=False)

    # snapshot taken at attachment time, never recomputed from the live voucher
    amount = Column(Float, nullable=False, default=0.0)

    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    invoice = relationship("Invoice", back_populates="links")
