from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


SESSION_STATUS_ACTIVE = "active"
SESSION_STATUS_COMPLETED = "completed"
SESSION_STATUS_CANCELLED = "cancelled"


class InventorySession(db.Model):
    """
    Physical count of a store's stock.

    LIFECYCLE:
    1. active: items seeded from current stock, counts being entered
    2. completed: count closed
    3. cancelled: count abandoned

    completed and cancelled are terminal.

    CONCURRENCY: at most one active session per store. The partial unique
    index below makes the check atomic at the data layer; the service-level
    pre-check only gives a friendlier message.
    """
    __tablename__ = "inventory_sessions"
    __table_args__ = (
        db.Index(
            "uq_inventory_sessions_active_store",
            "store_id",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
        db.Index("ix_inventory_sessions_store_created", "store_id", "created_at"),
        db.CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name="ck_inventory_sessions_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=SESSION_STATUS_ACTIVE)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    store = db.relationship("Store")
    creator = db.relationship("User", foreign_keys=[created_by])
    items = db.relationship(
        "InventoryItem",
        backref=db.backref("session", lazy=True),
        lazy=True,
        cascade="all, delete-orphan",
        order_by="InventoryItem.id",
    )

    def __repr__(self) -> str:
        return f"<InventorySession id={self.id} store_id={self.store_id} status={self.status}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "store_id": self.store_id,
            "store_name": self.store.name if self.store else None,
            "created_by": self.created_by,
            "created_by_name": self.creator.name if self.creator else None,
            "status": self.status,
            "item_count": len(self.items),
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "cancellation_reason": self.cancellation_reason,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InventoryItem(db.Model):
    """
    One product line of a session.

    expected_quantity is captured from stock when the session starts.
    difference == counted_quantity - expected_quantity once counted.
    is_adjusted is set once the count has been written back to stock.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("session_id", "product_id", name="uq_inventory_items_session_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("inventory_sessions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    expected_quantity = db.Column(db.Integer, nullable=False, default=0)
    counted_quantity = db.Column(db.Integer, nullable=True)
    difference = db.Column(db.Integer, nullable=True)
    is_adjusted = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "sku": self.product.sku if self.product else None,
            "expected_quantity": self.expected_quantity,
            "counted_quantity": self.counted_quantity,
            "difference": self.difference,
            "is_adjusted": self.is_adjusted,
            "notes": self.notes,
            "updated_at": to_utc_z(self.updated_at),
        }
