from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


RETURN_STATUS_PENDING = "pending"
RETURN_STATUS_APPROVED = "approved"
RETURN_STATUS_REJECTED = "rejected"


class Return(db.Model):
    """
    Customer return against a previous sale.

    LIFECYCLE:
    pending -> approved | rejected. Both decisions are terminal.
    Roles whose policy needs no approval create returns directly as approved.
    """
    __tablename__ = "returns"
    __table_args__ = (
        db.Index("ix_returns_store_created", "store_id", "created_at"),
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_returns_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    return_number = db.Column(db.String(32), nullable=False, unique=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    processed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    customer_name = db.Column(db.String(255), nullable=True)
    reason = db.Column(db.Text, nullable=True)
    total_amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=RETURN_STATUS_PENDING)
    notes = db.Column(db.Text, nullable=True)

    decided_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    decided_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    sale = db.relationship("Sale")
    store = db.relationship("Store")
    processor = db.relationship("User", foreign_keys=[processed_by])
    items = db.relationship(
        "ReturnItem",
        backref=db.backref("return_doc", lazy=True),
        lazy=True,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Return id={self.id} number={self.return_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "return_number": self.return_number,
            "sale_id": self.sale_id,
            "sale_number": self.sale.sale_number if self.sale else None,
            "store_id": self.store_id,
            "store_name": self.store.name if self.store else None,
            "processed_by": self.processed_by,
            "processed_by_name": self.processor.name if self.processor else None,
            "customer_name": self.customer_name,
            "reason": self.reason,
            "total_amount": self.total_amount,
            "status": self.status,
            "notes": self.notes,
            "decided_by": self.decided_by,
            "decided_at": to_utc_z(self.decided_at) if self.decided_at else None,
            "item_count": len(self.items),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ReturnItem(db.Model):
    __tablename__ = "return_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(db.Integer, db.ForeignKey("returns.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "return_id": self.return_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
        }
