from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from prestamos.constants import InstallmentStatus, LoanRequestStatus, LoanStatus
from prestamos.database.db import Base

# Montos: Numeric(12, 2) → Decimal con 2 decimales al leer
Money = Numeric(12, 2)


def _utcnow():
    return datetime.now(timezone.utc)


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    customers = relationship("Customer", back_populates="company")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    cedula = Column(String(20), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    monthly_salary = Column(Money, nullable=True)
    months_at_company = Column(Integer, nullable=True)
    contract_start = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    company = relationship("Company", back_populates="customers", lazy="joined")
    loan_requests = relationship("LoanRequest", back_populates="customer", lazy="selectin")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LoanRequest(Base):
    """Solicitud de préstamo (intake). Se aprueba o rechaza una sola vez."""
    __tablename__ = "loan_requests"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)

    requested_amount = Column(Money, nullable=False)
    duration_months = Column(Integer, nullable=False)

    bank_account_type = Column(String(50), nullable=True)
    account_number = Column(String(50), nullable=True)
    bank = Column(String(100), nullable=True)
    employer = Column(String(200), nullable=True)
    id_photos = Column(JSON, nullable=True)  # URLs de la foto de cédula

    status = Column(String, nullable=False, default=LoanRequestStatus.NEW.value, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    customer = relationship("Customer", back_populates="loan_requests", lazy="joined")
    loans = relationship("Loan", back_populates="loan_request")


class Loan(Base):
    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, index=True)
    loan_request_id = Column(Integer, ForeignKey("loan_requests.id", ondelete="RESTRICT"), nullable=False, index=True)

    principal = Column(Money, nullable=False)
    total_interest = Column(Money, nullable=False)
    installment_amount = Column(Money, nullable=False)     # cuota quincenal
    installments_count = Column(Integer, nullable=False)   # meses × 2
    next_due_date = Column(Date, nullable=False)
    outstanding_balance = Column(Money, nullable=False)    # saldo de capital pendiente

    status = Column(String, nullable=False, default=LoanStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    loan_request = relationship("LoanRequest", back_populates="loans", lazy="joined")
    installments = relationship(
        "Installment",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="Installment.number",
    )
    payments = relationship("Payment", back_populates="loan", cascade="all, delete-orphan")

    @property
    def customer(self):
        return self.loan_request.customer if self.loan_request else None


class Installment(Base):
    """Fila de la tabla de amortización (una quincena)."""
    __tablename__ = "installments"

    id = Column(Integer, primary_key=True, index=True)
    loan_id = Column(Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False)

    number = Column(Integer, nullable=False)  # Quincena 1, 2, 3...
    due_date = Column(Date, nullable=False)
    installment_amount = Column(Money, nullable=False)
    interest = Column(Money, nullable=False)
    capital = Column(Money, nullable=False)
    opening_balance = Column(Money, nullable=False)
    closing_balance = Column(Money, nullable=False)

    status = Column(String, nullable=False, default=InstallmentStatus.PENDING.value)

    loan = relationship("Loan", back_populates="installments")

    __table_args__ = (
        UniqueConstraint("loan_id", "number", name="ux_installments_loan_number"),
        Index("ix_installments_due_status", "due_date", "status"),
    )


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    loan_id = Column(Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=True)
    payment_date = Column(Date, nullable=False)
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Anulación (reversa) de pago
    is_voided = Column(Boolean, default=False, nullable=False)
    voided_at = Column(DateTime(timezone=True), nullable=True)
    void_reason = Column(String, nullable=True)

    loan = relationship("Loan", back_populates="payments")
