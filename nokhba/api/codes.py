"""
Recharge code administration API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from nokhba.api.deps import require_admin
from nokhba.database import get_db
from nokhba.schemas.wallet import CodeCreate, CodeResponse
from nokhba.services.auth_service import UserSession
from nokhba.services.recharge_service import recharge_service

router = APIRouter(prefix="/api/codes", tags=["codes"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=CodeResponse, status_code=201)
async def mint_code(
    request: CodeCreate,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Generate a new XXXXX-XXXXX code worth the chosen amount"""
    code = recharge_service.mint(db, request.value)
    logger.info(f"Admin {session.user_id} minted code worth {code.value}")
    return code


@router.get("/", response_model=List[CodeResponse])
async def list_codes(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Issued codes, newest first"""
    return recharge_service.list_codes(db)
