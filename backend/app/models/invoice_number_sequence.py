"""Per-prefix invoice number counter, incremented atomically on issue."""

from sqlalchemy import Column, Integer, String

from backend.app.db.base_class import Base


class InvoiceNumberSequence(Base):
    __tablename__ = "invoice_number_sequences"

    prefix = Column(String(40), primary_key=True)
    last_number = Column(Integer, nullable=False, default=0)
