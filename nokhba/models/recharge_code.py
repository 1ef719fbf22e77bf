"""
RechargeCode model - single-use wallet credit tokens
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime
from nokhba.database import Base
from nokhba.utils.clock import utcnow
import uuid


class RechargeCode(Base):
    """
    Recharge codes table - `used` only ever moves from False to True
    """
    __tablename__ = "recharge_codes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(11), unique=True, nullable=False, index=True)  # XXXXX-XXXXX
    value = Column(Integer, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    used_by = Column(String(128))
    used_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self):
        return f"<RechargeCode(code={self.code}, value={self.value}, used={self.used})>"
