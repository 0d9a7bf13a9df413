"""
Users API Router
Endpoints for user accounts
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, http_error, services
from api.schemas.user import UserCreate, UserResponse


router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Create a user

    - **name**: Display name used in alert emails
    - **email**: Unique email
    """
    user_service = services.get_user_service()

    try:
        return await user_service.create_user(
            name=user_data.name,
            email=user_data.email,
            db=db
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db)
):
    user_service = services.get_user_service()

    user = await user_service.get_user(user_id, db=db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )
    return user
