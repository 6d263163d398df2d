from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import cents_to_amount


class StoreSettings(db.Model):
    """Singleton row (id=1) holding store-wide settings."""
    __tablename__ = "store_settings"

    id = db.Column(db.Integer, primary_key=True)
    store_name = db.Column(db.String(120), nullable=False, default="Store")
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=5)
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "store_name": self.store_name,
            "low_stock_threshold": self.low_stock_threshold,
            "delivery_fee": cents_to_amount(self.delivery_fee_cents),
            "updated_at": to_utc_z(self.updated_at),
        }
