"""
Admin Module - Models
======================
DocumentSequence: per (prefix, year) counters for human-readable IDs
RequestLog: HTTP request audit trail
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Index, UniqueConstraint
from sqlalchemy.sql import func
from config.database import Base


class DocumentSequence(Base):
    __tablename__ = "document_sequences"

    id = Column(Integer, primary_key=True)
    prefix = Column(String(30), nullable=False)      # "SS", "LS-ASSY", "LS-INV"
    year = Column(Integer, nullable=False)
    last_value = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("prefix", "year", name="uq_document_sequence_prefix_year"),
    )

    def __repr__(self):
        return f"<DocumentSequence {self.prefix}-{self.year}={self.last_value}>"


# ==========================================
# Request Audit Log
# ==========================================

class RequestLog(Base):
    __tablename__ = "request_logs"

    id = Column(Integer, primary_key=True)
    method = Column(String(10), nullable=False)
    path = Column(String(500), nullable=False)
    query_string = Column(Text, nullable=True)
    status_code = Column(Integer, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    user_id = Column(Integer, nullable=True)
    user_display = Column(String(200), nullable=True)        # email (quick display)
    body_preview = Column(Text, nullable=True)               # truncated, passwords masked
    response_time_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_reqlog_created", "created_at"),
        Index("ix_reqlog_path", "path"),
        Index("ix_reqlog_user", "user_id"),
    )

    @property
    def status_color(self) -> str:
        if self.status_code < 300:
            return "success"
        elif self.status_code < 400:
            return "info"
        elif self.status_code < 500:
            return "warning"
        return "danger"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "method": self.method,
            "path": self.path,
            "query_string": self.query_string,
            "status_code": self.status_code,
            "status_color": self.status_color,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "user_id": self.user_id,
            "user_display": self.user_display,
            "body_preview": self.body_preview,
            "response_time_ms": self.response_time_ms,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
