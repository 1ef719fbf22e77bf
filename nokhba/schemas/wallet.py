"""
Pydantic schemas for recharge codes and the wallet
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CodeCreate(BaseModel):
    """Schema for minting a recharge code"""
    value: int = Field(50, gt=0, description="Credit in EGP")


class CodeResponse(BaseModel):
    """Recharge code as listed to administrators"""
    id: str
    code: str
    value: int
    used: bool
    used_by: Optional[str] = None
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RedeemRequest(BaseModel):
    """Schema for redeeming a code"""
    code: str = Field(..., min_length=1, max_length=64)


class RedeemResponse(BaseModel):
    """Successful redemption"""
    message: str
    credited: int
    wallet_balance: int


class WalletResponse(BaseModel):
    """Current wallet balance"""
    wallet_balance: int
