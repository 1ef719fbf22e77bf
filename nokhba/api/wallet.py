"""
Wallet API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from nokhba.api.deps import get_current_session, limit_redemptions
from nokhba.database import get_db
from nokhba.models import Student
from nokhba.schemas.wallet import RedeemRequest, RedeemResponse, WalletResponse
from nokhba.services.auth_service import UserSession
from nokhba.services.recharge_service import (
    REJECTION_MESSAGES,
    RedeemRejection,
    recharge_service,
)

router = APIRouter(prefix="/api/wallet", tags=["wallet"])
logger = logging.getLogger(__name__)

REJECTION_STATUS = {
    RedeemRejection.NOT_FOUND: 404,
    RedeemRejection.ALREADY_USED: 409,
}


@router.post("/redeem", response_model=RedeemResponse)
async def redeem_code(
    request: RedeemRequest,
    session: UserSession = Depends(limit_redemptions),
    db: Session = Depends(get_db)
):
    """
    Redeem a recharge code into the caller's wallet

    - 404 when the code does not exist
    - 409 when the code was already used (including a lost race)
    """
    outcome = recharge_service.redeem(db, session, request.code)

    if isinstance(outcome, RedeemRejection):
        raise HTTPException(status_code=REJECTION_STATUS[outcome], detail=REJECTION_MESSAGES[outcome])

    return RedeemResponse(
        message=f"تم شحن {outcome.credited} ج.م بنجاح!",
        credited=outcome.credited,
        wallet_balance=outcome.wallet_balance
    )


@router.get("/", response_model=WalletResponse)
async def get_wallet(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    student = db.query(Student).filter(Student.id == session.user_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return WalletResponse(wallet_balance=student.wallet_balance)
