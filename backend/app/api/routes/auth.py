"""
Authentication endpoints: register and login.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.user import UserCreate, UserLogin, UserProfile
from app.services.auth_service import register_user, authenticate_user

router = APIRouter(tags=["Authentication"])


@router.post("/register")
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new student account."""
    await register_user(db, user_data)
    return {"success": True, "message": "Registration successful!"}


@router.post("/login")
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Check credentials and return the student's profile (never the hash)."""
    user = await authenticate_user(db, login_data)
    profile = UserProfile(
        student_id=user.student_id,
        full_name=user.full_name,
        phone_number=user.phone,
        email=user.email,
    )
    return {
        "success": True,
        "message": "Login successful!",
        "user": profile.model_dump(by_alias=True),
    }
