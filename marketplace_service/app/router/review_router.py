# app/router/review_router.py
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shared.core.database import get_marketplace_db as get_db
from shared.core.schemas import CommonQueryParams, UserToken
from shared.core.auth import allow_customer, validate_current_token
from ..schemas.reviews_schemas import ReviewCreate, ReviewOut
from ..crud import reviews_crud as crud

router = APIRouter(prefix="/api/reviews",
                   tags=["reviews"], dependencies=[Depends(validate_current_token)])


@router.post("/", response_model=ReviewOut)
def add_review(
    review: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_customer)
):
    return crud.add_review(db, current_user.user_id, review)


@router.get("/vendor/{vendor_id}", response_model=List[ReviewOut])
def vendor_reviews(
    vendor_id: UUID,
    params: CommonQueryParams = Depends(),
    db: Session = Depends(get_db)
):
    return crud.get_vendor_reviews(db, vendor_id, skip=params.skip, limit=params.limit)
