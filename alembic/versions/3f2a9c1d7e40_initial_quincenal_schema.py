"""Esquema inicial de préstamos quincenales

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 10:12:44.201518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_companies_name", "companies", ["name"], unique=True)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cedula", sa.String(length=20), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("company_id", sa.Integer(),
                  sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True),
        sa.Column("monthly_salary", sa.Numeric(12, 2), nullable=True),
        sa.Column("months_at_company", sa.Integer(), nullable=True),
        sa.Column("contract_start", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_customers_cedula", "customers", ["cedula"], unique=True)
    op.create_index("ix_customers_company_id", "customers", ["company_id"])
    op.create_index("ix_customers_created_at", "customers", ["created_at"])

    op.create_table(
        "loan_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(),
                  sa.ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("requested_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("duration_months", sa.Integer(), nullable=False),
        sa.Column("bank_account_type", sa.String(length=50), nullable=True),
        sa.Column("account_number", sa.String(length=50), nullable=True),
        sa.Column("bank", sa.String(length=100), nullable=True),
        sa.Column("employer", sa.String(length=200), nullable=True),
        sa.Column("id_photos", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="new"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_loan_requests_customer_id", "loan_requests", ["customer_id"])
    op.create_index("ix_loan_requests_status", "loan_requests", ["status"])
    op.create_index("ix_loan_requests_created_at", "loan_requests", ["created_at"])

    op.create_table(
        "loans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("loan_request_id", sa.Integer(),
                  sa.ForeignKey("loan_requests.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("principal", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_interest", sa.Numeric(12, 2), nullable=False),
        sa.Column("installment_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("installments_count", sa.Integer(), nullable=False),
        sa.Column("next_due_date", sa.Date(), nullable=False),
        sa.Column("outstanding_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_loans_loan_request_id", "loans", ["loan_request_id"])
    op.create_index("ix_loans_status", "loans", ["status"])

    op.create_table(
        "installments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("loan_id", sa.Integer(),
                  sa.ForeignKey("loans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("installment_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("interest", sa.Numeric(12, 2), nullable=False),
        sa.Column("capital", sa.Numeric(12, 2), nullable=False),
        sa.Column("opening_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("closing_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.UniqueConstraint("loan_id", "number", name="ux_installments_loan_number"),
    )
    op.create_index("ix_installments_due_status", "installments", ["due_date", "status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("loan_id", sa.Integer(),
                  sa.ForeignKey("loans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("installment_number", sa.Integer(), nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_voided", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("voided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("void_reason", sa.String(), nullable=True),
    )
    op.create_index("ix_payments_loan_id", "payments", ["loan_id"])


def downgrade():
    op.drop_index("ix_payments_loan_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_installments_due_status", table_name="installments")
    op.drop_table("installments")
    op.drop_index("ix_loans_status", table_name="loans")
    op.drop_index("ix_loans_loan_request_id", table_name="loans")
    op.drop_table("loans")
    op.drop_index("ix_loan_requests_created_at", table_name="loan_requests")
    op.drop_index("ix_loan_requests_status", table_name="loan_requests")
    op.drop_index("ix_loan_requests_customer_id", table_name="loan_requests")
    op.drop_table("loan_requests")
    op.drop_index("ix_customers_created_at", table_name="customers")
    op.drop_index("ix_customers_company_id", table_name="customers")
    op.drop_index("ix_customers_cedula", table_name="customers")
    op.drop_table("customers")
    op.drop_index("ix_companies_name", table_name="companies")
    op.drop_table("companies")
