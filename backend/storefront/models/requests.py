from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


REQUEST_STATUSES = ("PENDING", "APPROVED", "REJECTED", "PROCESSING", "COMPLETED", "CANCELLED")
TERMINAL_REQUEST_STATUSES = frozenset({"COMPLETED", "CANCELLED"})


class ProductRequest(db.Model):
    """
    A seller's request for more stock of a product.

    COMPLETED and CANCELLED are terminal. restocked_at is stamped in the
    same transaction that credits stock, so a request restocks at most once.
    """
    __tablename__ = "product_requests"
    __table_args__ = (
        db.CheckConstraint("quantity_requested > 0", name="ck_product_requests_quantity_positive"),
        db.Index("ix_product_requests_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    requested_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity_requested = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="PENDING")

    notes = db.Column(db.Text, nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)

    restocked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    requested_by = db.relationship("User", backref=db.backref("product_requests", lazy=True))
    product = db.relationship("Product", backref=db.backref("requests", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seller_id": self.requested_by_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity_requested": self.quantity_requested,
            "status": self.status,
            "notes": self.notes,
            "admin_notes": self.admin_notes,
            "restocked_at": to_utc_z(self.restocked_at) if self.restocked_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
