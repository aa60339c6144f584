"""
Exporter Module - Models
=========================
Exporter: registered business shipping gold/silver through the assay office.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from config.database import Base


class ExporterType(str, enum.Enum):
    SMALL_SCALE = "small-scale"
    LARGE_SCALE = "large-scale"
    GOLD = "gold"
    OTHER = "other"


class Exporter(Base):
    __tablename__ = "exporters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    exporter_type = Column(String(20), default=ExporterType.OTHER.value, nullable=False, index=True)
    authorized_signatory = Column(String(200), nullable=True)
    license_number = Column(String(100), nullable=True)
    email = Column(String(200), nullable=True)
    telephone = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    job_cards = relationship("JobCard", back_populates="exporter")

    @property
    def type_label(self) -> str:
        return {
            ExporterType.SMALL_SCALE.value: "Small Scale",
            ExporterType.LARGE_SCALE.value: "Large Scale",
            ExporterType.GOLD.value: "Gold",
            ExporterType.OTHER.value: "Other",
        }.get(self.exporter_type, self.exporter_type)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "exporter_type": self.exporter_type,
            "authorized_signatory": self.authorized_signatory,
            "license_number": self.license_number,
            "email": self.email,
            "telephone": self.telephone,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<Exporter {self.code} ({self.exporter_type})>"
