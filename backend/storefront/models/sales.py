from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


SOURCE_ONLINE = "ONLINE"
SOURCE_SELLER_DIRECT = "SELLER_DIRECT"
SALE_SOURCES = (SOURCE_ONLINE, SOURCE_SELLER_DIRECT)


class SaleRecord(db.Model):
    """
    Append-only sales audit trail.

    ONLINE records pair with exactly one Order (order_id); SELLER_DIRECT
    records carry the seller and have no Order. Nothing updates a record
    after insert. Deleting an order only clears order_id here.
    """
    __tablename__ = "sale_records"
    __table_args__ = (
        db.CheckConstraint(
            "source IN ('ONLINE', 'SELLER_DIRECT')",
            name="ck_sale_records_source",
        ),
        db.Index("ix_sale_records_source_created", "source", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    source = db.Column(db.String(16), nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    seller = db.relationship("User", backref=db.backref("sale_records", lazy=True))
    order = db.relationship("Order", backref=db.backref("sale_record", uselist=False))
    lines = db.relationship(
        "SaleRecordLine",
        back_populates="sale_record",
        cascade="all, delete-orphan",
        order_by="SaleRecordLine.id",
        lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "order_id": self.order_id,
            "source": self.source,
            "items": [line.to_dict() for line in self.lines],
            "total_amount_cents": self.total_amount_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class SaleRecordLine(db.Model):
    __tablename__ = "sale_record_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_record_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_record_id = db.Column(
        db.Integer,
        db.ForeignKey("sale_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    sale_record = db.relationship("SaleRecord", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }
