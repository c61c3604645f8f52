# app/models/vendor_locations.py
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base
from ...util.geo import to_wkt_point


class VendorLocation(Base):
    """Latest known status of a vendor, one row per vendor (last write wins)."""
    __tablename__ = "vendor_locations"

    vendor_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("vendors.id", ondelete="CASCADE"),
        primary_key=True
    )
    latitude = Column(Float)
    longitude = Column(Float)
    is_active = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    vendor = relationship("Vendor", back_populates="location_status")

    __table_args__ = (
        Index("ix_vendor_locations_vendor_updated", "vendor_id", "updated_at"),
        Index("ix_vendor_locations_active_lat_lng",
              "is_active", "latitude", "longitude"),
    )

    @property
    def location(self):
        return to_wkt_point(self.latitude, self.longitude)
