from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


COMPANY_STATUSES = ("TRIAL", "ACTIVE", "SUSPENDED", "INACTIVE")

# Statuses that block login for every user of the company
BLOCKED_STATUSES = ("SUSPENDED", "INACTIVE")


class Company(db.Model):
    """
    Multi-tenant root: every account is a Company.

    MULTI-TENANT: Users, products, movements and suppliers carry company_id.
    No data may cross company boundaries.

    LIFECYCLE:
    - Self-registration creates a TRIAL company with trial_ends_at set
    - Checkout creates an ACTIVE company and records the (simulated) purchase
    - Platform admins toggle status and extend trials
    """
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    trade_name = db.Column(db.String(255), nullable=True)
    tax_id = db.Column(db.String(32), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    plan = db.Column(db.String(32), nullable=False, default="BASICO")
    status = db.Column(db.String(16), nullable=False, default="TRIAL", index=True)
    trial_ends_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Purchase data captured by checkout
    amount_paid_cents = db.Column(db.Integer, nullable=True)
    payment_method = db.Column(db.String(16), nullable=True)
    transaction_id = db.Column(db.String(64), nullable=True)
    purchased_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r} status={self.status}>"

    @property
    def is_blocked(self) -> bool:
        return self.status in BLOCKED_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "trade_name": self.trade_name,
            "tax_id": self.tax_id,
            "phone": self.phone,
            "plan": self.plan,
            "status": self.status,
            "trial_ends_at": to_utc_z(self.trial_ends_at),
            "amount_paid_cents": self.amount_paid_cents,
            "payment_method": self.payment_method,
            "transaction_id": self.transaction_id,
            "purchased_at": to_utc_z(self.purchased_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
