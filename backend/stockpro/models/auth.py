from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


USER_ROLES = ("ADMIN", "USER")


class User(db.Model):
    """
    Application user.

    MULTI-TENANT: Every user belongs to exactly one company (company_id).
    E-mail is the login identifier and is unique across all companies.

    is_platform_admin marks StockPro operators allowed to manage company
    lifecycle (status toggles, trial extension). It is independent of role.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_company_active", "company_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="USER")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_platform_admin = db.Column(db.Boolean, nullable=False, default=False)

    # Checkout-provisioned accounts must change the generated password
    first_access = db.Column(db.Boolean, nullable=False, default=False)
    temporary_password = db.Column(db.Boolean, nullable=False, default=False)

    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    company = db.relationship("Company", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} company_id={self.company_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "company": self.company.name if self.company else None,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "first_access": self.first_access,
            "temporary_password": self.temporary_password,
            "last_login_at": to_utc_z(self.last_login_at),
            "created_at": to_utc_z(self.created_at),
        }
