"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("investor", "lender", "admin", name="userrole"), nullable=False),
        sa.Column(
            "verification_status",
            sa.Enum("pending", "verified", "rejected", name="verificationstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("onboarding_completed", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role_active", "users", ["role", "is_active"], unique=False)

    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("is_locked", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )
    op.create_index("ix_wallets_id", "wallets", ["id"], unique=False)
    op.create_index("ix_wallets_user_id", "wallets", ["user_id"], unique=True)

    op.create_table(
        "deals",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("lender_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("loan_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("interest_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("term_months", sa.Integer, nullable=False),
        sa.Column("ltv", sa.Numeric(5, 2), nullable=False),
        sa.Column("property_type", sa.String(64), nullable=True),
        sa.Column("property_location", sa.String(255), nullable=True),
        sa.Column(
            "status",
            sa.Enum("submitted", "approved", "rejected", "funded", "active", "repaid", name="dealstatus"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_deals_id", "deals", ["id"], unique=False)
    op.create_index("ix_deals_lender_id", "deals", ["lender_id"], unique=False)
    op.create_index("ix_deals_status", "deals", ["status"], unique=False)

    op.create_table(
        "pending_transactions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("deal_id", sa.Integer, sa.ForeignKey("deals.id"), nullable=True),
        sa.Column("tx_type", sa.Enum("investment", "repayment", name="pendingtype"), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.Enum("pending", "approved", "rejected", name="pendingstatus"), nullable=False),
        sa.Column("decided_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_pending_transactions_id", "pending_transactions", ["id"], unique=False)
    op.create_index("ix_pending_transactions_type_status", "pending_transactions", ["tx_type", "status"], unique=False)
    op.create_index("ix_pending_transactions_deal", "pending_transactions", ["deal_id"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "tx_type",
            sa.Enum("deposit", "withdrawal", "investment", "repayment", name="transactiontype"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.Enum("pending", "completed", "failed", name="transactionstatus"), nullable=False),
        sa.Column("reference_id", sa.String(128), nullable=True),
        sa.Column("external_reference", sa.String(128), nullable=True),
        sa.Column("description", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("external_reference", name="uq_transactions_external_reference"),
    )
    op.create_index("ix_transactions_id", "transactions", ["id"], unique=False)
    op.create_index("ix_transactions_reference_id", "transactions", ["reference_id"], unique=False)
    op.create_index("ix_transactions_user_status", "transactions", ["user_id", "status"], unique=False)
    op.create_index("ix_transactions_type_status", "transactions", ["tx_type", "status"], unique=False)

    op.create_table(
        "investments",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("investor_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("deal_id", sa.Integer, sa.ForeignKey("deals.id"), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.Enum("pending", "completed", name="investmentstatus"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_investments_id", "investments", ["id"], unique=False)
    op.create_index("ix_investments_deal_status", "investments", ["deal_id", "status"], unique=False)
    op.create_index("ix_investments_investor", "investments", ["investor_id"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(120), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"], unique=False)
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"], unique=False)


def downgrade():
    op.drop_table("notifications")
    op.drop_table("investments")
    op.drop_table("transactions")
    op.drop_table("pending_transactions")
    op.drop_table("deals")
    op.drop_table("wallets")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS investmentstatus")
    op.execute("DROP TYPE IF EXISTS transactionstatus")
    op.execute("DROP TYPE IF EXISTS transactiontype")
    op.execute("DROP TYPE IF EXISTS pendingstatus")
    op.execute("DROP TYPE IF EXISTS pendingtype")
    op.execute("DROP TYPE IF EXISTS dealstatus")
    op.execute("DROP TYPE IF EXISTS verificationstatus")
    op.execute("DROP TYPE IF EXISTS userrole")
