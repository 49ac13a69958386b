from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String, UniqueConstraint

from .database import Base


DECIMAL_TYPE = Numeric(12, 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        UniqueConstraint("kind", "identifier", name="uix_profile_identity"),
    )

    id = Column(Integer, primary_key=True)
    kind = Column(String(20), nullable=False)
    identifier = Column(String(255), nullable=False)
    budget = Column(DECIMAL_TYPE, nullable=False, default=Decimal("16000.00"))
    min_percent = Column(Numeric(6, 2), nullable=False, default=Decimal("5.00"))
    debts = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "budget": str(self.budget),
            "minPercent": str(self.min_percent),
            "debts": list(self.debts or []),
            "updatedAt": self.updated_at.isoformat(),
        }
