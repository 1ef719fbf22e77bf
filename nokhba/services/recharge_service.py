"""
Recharge ledger - minting and redeeming single-use wallet codes
"""
import logging
import random
import string
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

from nokhba.config import settings
from nokhba.models import RechargeCode, Student
from nokhba.services.auth_service import UserSession
from nokhba.services.exceptions import InvalidCodeValue, StudentNotFound
from nokhba.utils.change_feed import change_feed
from nokhba.utils.clock import utcnow

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_HALF_LENGTH = 5
MAX_MINT_TRIES = 5


class RedeemRejection(str, Enum):
    NOT_FOUND = "NotFound"
    ALREADY_USED = "AlreadyUsed"


REJECTION_MESSAGES = {
    RedeemRejection.NOT_FOUND: "الكود غير صحيح",
    RedeemRejection.ALREADY_USED: "هذا الكود مستخدم مسبقاً",
}


@dataclass(frozen=True)
class RedeemResult:
    credited: int
    wallet_balance: int


def generate_code(rng: random.Random = None) -> str:
    """
    Random XXXXX-XXXXX code.

    Uses the non-cryptographic `random` module; codes are guessable by
    brute force and rely on rate limiting, not on entropy.
    """
    rng = rng or random
    chars = "".join(rng.choice(CODE_ALPHABET) for _ in range(CODE_HALF_LENGTH * 2))
    return f"{chars[:CODE_HALF_LENGTH]}-{chars[CODE_HALF_LENGTH:]}"


class RechargeService:
    """
    Service for the recharge code ledger

    Redemption claims the code with `UPDATE ... WHERE used = false` and
    credits the wallet with an in-database increment inside the same
    transaction, so two concurrent redemptions cannot both succeed.
    """

    def __init__(self, rng: random.Random = None):
        self.rng = rng

    def mint(self, db: Session, value: int) -> RechargeCode:
        if value not in settings.RECHARGE_CODE_VALUES:
            raise InvalidCodeValue(f"Code value must be one of {settings.RECHARGE_CODE_VALUES}")

        for _ in range(MAX_MINT_TRIES):
            code_text = generate_code(self.rng)
            if not db.query(RechargeCode.id).filter(RechargeCode.code == code_text).first():
                break
        else:
            raise RuntimeError("Could not generate a unique recharge code")

        code = RechargeCode(code=code_text, value=value, used=False)
        db.add(code)
        db.commit()
        db.refresh(code)

        logger.info(f"Recharge code minted: {code.code} ({code.value})")
        change_feed.publish("codes", {"type": "code_added", "code": code.code, "value": code.value})
        return code

    def list_codes(self, db: Session) -> List[RechargeCode]:
        return db.query(RechargeCode).order_by(RechargeCode.created_at.desc()).all()

    def _find(self, db: Session, code_text: str) -> Optional[RechargeCode]:
        return db.query(RechargeCode).filter(RechargeCode.code == code_text).first()

    def _claim(self, db: Session, code_id: str, user_id: str) -> bool:
        """Flip used False -> True; False if somebody else got there first"""
        claimed = db.execute(
            update(RechargeCode)
            .where(RechargeCode.id == code_id, RechargeCode.used.is_(False))
            .values(used=True, used_by=user_id, used_at=utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount
        return claimed == 1

    def _credit(self, db: Session, user_id: str, amount: int) -> bool:
        credited = db.execute(
            update(Student)
            .where(Student.id == user_id)
            .values(wallet_balance=Student.wallet_balance + amount)
            .execution_options(synchronize_session=False)
        ).rowcount
        return credited == 1

    def redeem(self, db: Session, session: UserSession, code_text: str) -> Union[RedeemResult, RedeemRejection]:
        """
        Redeem a code for the session's student

        Returns:
            RedeemResult on success, otherwise the RedeemRejection reason

        Raises:
            StudentNotFound: no profile to credit
        """
        if not db.query(Student.id).filter(Student.id == session.user_id).first():
            raise StudentNotFound()

        code = self._find(db, code_text.strip())
        if code is None:
            logger.warning(f"Redeem rejected (not found) for user {session.user_id}")
            return RedeemRejection.NOT_FOUND

        if code.used:
            logger.warning(f"Redeem rejected (already used): {code.code} by user {session.user_id}")
            return RedeemRejection.ALREADY_USED

        value = code.value
        try:
            if not self._claim(db, code.id, session.user_id):
                db.rollback()
                logger.warning(f"Redeem lost race: {code_text} by user {session.user_id}")
                return RedeemRejection.ALREADY_USED
            if not self._credit(db, session.user_id, value):
                raise StudentNotFound()
            db.commit()
        except Exception:
            db.rollback()
            raise

        balance = db.query(Student.wallet_balance).filter(Student.id == session.user_id).scalar()
        logger.info(f"Code redeemed by user {session.user_id}: +{value}, balance={balance}")

        change_feed.publish(f"wallet:{session.user_id}", {"wallet_balance": balance})
        change_feed.publish("codes", {"type": "code_used", "code": code_text.strip()})
        return RedeemResult(credited=value, wallet_balance=balance)


# Global instance
recharge_service = RechargeService()
