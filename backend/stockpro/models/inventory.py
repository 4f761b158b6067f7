from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_DIRECTIONS = (MOVEMENT_IN, MOVEMENT_OUT)


class Product(db.Model):
    """
    Product master data with its running stock quantity.

    MULTI-TENANT: Products are scoped to companies via company_id.

    CODE DESIGN:
    - code is the display identifier (e.g. "001"), unique within a company
    - barcode is the scannable code used by the POS lookup (optional)
    - id is internal and never shown

    STOCK:
    quantity_on_hand is a running total. It is only changed together with a
    Movement row, inside the same transaction (see stock_service).

    LIFECYCLE:
    Soft delete sets is_active=False; inactive products are excluded from sales
    and movements but stay visible to reports.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("company_id", "code", name="uq_products_company_code"),
        db.Index("ix_products_company_name", "company_id", "name"),
        db.Index("ix_products_company_active", "company_id", "is_active"),
        db.Index("ix_products_company_barcode", "company_id", "barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    code = db.Column(db.String(32), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False, default="")
    brand = db.Column(db.String(120), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    sale_price_cents = db.Column(db.Integer, nullable=False, default=0)

    quantity_on_hand = db.Column(db.Integer, nullable=False, default=0)
    reorder_threshold = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    has_expiry = db.Column(db.Boolean, nullable=False, default=False)
    expiry_date = db.Column(db.Date, nullable=True)
    alert_window_days = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r} company_id={self.company_id}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity_on_hand <= self.reorder_threshold

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "code": self.code,
            "barcode": self.barcode,
            "name": self.name,
            "category": self.category,
            "brand": self.brand,
            "cost_price_cents": self.cost_price_cents,
            "sale_price_cents": self.sale_price_cents,
            "quantity_on_hand": self.quantity_on_hand,
            "reorder_threshold": self.reorder_threshold,
            "is_active": self.is_active,
            "has_expiry": self.has_expiry,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "alert_window_days": self.alert_window_days,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Movement(db.Model):
    """
    One recorded stock change: an exit (sale, OUT) or an entry (restock, IN).

    DENORMALIZED FIELDS:
    product_code, product_name and unit_price_cents are captured when the
    movement is created and never rewritten. cost_price_cents_at_sale is
    captured on OUT movements so profit can be computed from historical cost.

    product_id is nullable: a hard-deleted product leaves its movements behind
    with the captured code and name.
    """
    __tablename__ = "movements"
    __table_args__ = (
        db.Index("ix_movements_company_occurred", "company_id", "occurred_at"),
        db.Index("ix_movements_company_direction_occurred", "company_id", "direction", "occurred_at"),
        db.CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    product_code = db.Column(db.String(32), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    direction = db.Column(db.String(8), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents_at_sale = db.Column(db.Integer, nullable=True)

    note = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("movements", lazy=True))

    def __repr__(self) -> str:
        return (
            f"<Movement id={self.id} {self.direction} {self.quantity}x {self.product_code!r} "
            f"company_id={self.company_id}>"
        )

    @property
    def quantity_delta(self) -> int:
        """Signed effect of this movement on quantity_on_hand."""
        return self.quantity if self.direction == MOVEMENT_IN else -self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "product_id": self.product_id,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "direction": self.direction,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
            "cost_price_cents_at_sale": self.cost_price_cents_at_sale,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
        }


class Supplier(db.Model):
    """Supplier registry, scoped per company. Soft delete via is_active."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_company_name", "company_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    legal_name = db.Column(db.String(255), nullable=True)
    tax_id = db.Column(db.String(32), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    contact_name = db.Column(db.String(120), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "legal_name": self.legal_name,
            "tax_id": self.tax_id,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "contact_name": self.contact_name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
