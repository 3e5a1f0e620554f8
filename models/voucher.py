from sqlalchemy import Column, String, Date, Float

from models.base import Base


class Voucher(Base):
    """
    Local mirror of the vouchers extracted from daily site reports.
    Written by the reporting side only; this service reads it.
    """

    __tablename__ = "vouchers"

    id = Column(String(64), primary_key=True)
    project_id = Column(String(64), index=True, nullable=False)

    type = Column(String(16), index=True, nullable=False)  # delivery | evacuation | concrete | materials
    number = Column(String(140), nullable=True)
    supplier = Column(String(255), index=True, nullable=True)
    date = Column(Date, index=True, nullable=True)

    quantity = Column(Float, nullable=False, default=0.0)
    unit = Column(String(32), nullable=True)
    unit_price = Column(Float, nullable=True)

    status = Column(String(16), index=True, nullable=False, default="draft")

    # type-specific descriptors
    materials = Column(String(255), nullable=True)  # concrete: grade / type of concrete
    loading_location = Column(String(255), nullable=True)
    unloading_location = Column(String(255), nullable=True)
    truck_type = Column(String(64), nullable=True)
