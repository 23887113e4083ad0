"""POST/GET /v1/profiles - user balance profiles"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cashflow_core.api.v1.schemas import ProfileCreate, ProfileResponse
from cashflow_core.infrastructure.database.session import get_db
from cashflow_core.infrastructure.database.repositories import ProfileRepository

router = APIRouter()


@router.post("/profiles", response_model=ProfileResponse, status_code=201)
def create_profile(request_body: ProfileCreate, db: Session = Depends(get_db)):
    """
    Create a profile with its initial balance.

    The cached current balance starts equal to the initial balance and is
    afterwards only moved by reconciliation.
    """
    try:
        profile = ProfileRepository(db).create(
            user_id=request_body.user_id,
            initial_balance=request_body.initial_balance,
            warning_threshold=request_body.warning_threshold,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info("Profile created", extra={"user_id": profile.user_id})
    return ProfileResponse.model_validate(profile)


@router.get("/profiles/{user_id}", response_model=ProfileResponse)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    return ProfileResponse.model_validate(ProfileRepository(db).get(user_id))
