import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.responses import envelope
from app.core.security import (
    VERIFY_TOKEN,
    TokenError,
    bearer_scheme,
    create_token,
    decode_token,
    get_current_user,
    hash_password,
    verify_password,
)
from app.models.user import User
from app.schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    SignupRequest,
    UpdateUserRequest,
    UserResponse,
    VerifyOtpRequest,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", status_code=201)
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    """
    Register a new account.

    The returned token verifies the email address via /users/verify-email.
    """
    if not request.username or not request.email or not request.password:
        raise HTTPException(status_code=400, detail="All fields are required")

    email = request.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="User already exists with this email")
    if db.query(User).filter(User.username == request.username).first():
        raise HTTPException(status_code=400, detail="Username is already taken")

    user = User(
        username=request.username,
        email=email,
        password_hash=hash_password(request.password),
        health_conditions=[],
        allergies=[]
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return envelope(
        True,
        message="User registered successfully",
        status_code=201,
        user=UserResponse.from_user(user),
        token=create_token(user.id, VERIFY_TOKEN)
    )


@router.post("/verify-email")
def verify_email(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    """Mark the account behind a verification token as verified"""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authorization token is missing or invalid")

    try:
        user_id = decode_token(credentials.credentials, VERIFY_TOKEN)
    except TokenError as e:
        raise HTTPException(status_code=400 if e.expired else 401, detail=str(e))

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.is_verified = True
    db.commit()
    return envelope(True, message="Email verified successfully")


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for an access token"""
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="All fields are required")

    user = db.query(User).filter(User.email == request.email.strip().lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="Unauthorized Access")

    if not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_verified:
        raise HTTPException(status_code=401, detail="Verify Your Email to Login")

    user.is_logged_in = True
    db.commit()
    db.refresh(user)

    return envelope(
        True,
        message="Login successful",
        access_token=create_token(user.id),
        user=UserResponse.from_user(user)
    )


@router.post("/logout")
def logout(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    user.is_logged_in = False
    db.commit()
    return envelope(True, message="Logout successful")


def _find_by_email(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _otp_expired(user: User) -> bool:
    expiry = user.otp_expiry
    if expiry is None:
        return True
    # SQLite hands back naive datetimes; they were stored as UTC
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) > expiry


@router.post("/forgot-password")
def forgot_password(
    request: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Issue a 6-digit one-time code for resetting the password.

    Mail delivery is not wired up: the code is logged, and outside
    production it is also returned in the response.
    """
    if not request.email:
        raise HTTPException(status_code=400, detail="Email is required")

    user = _find_by_email(db, request.email)

    otp = f"{secrets.randbelow(900000) + 100000}"
    user.otp = otp
    user.otp_expiry = datetime.now(timezone.utc) + settings.otp_ttl
    user.otp_verified = False
    db.commit()

    logger.info("Password reset code for user %s: %s", user.id, otp)
    if settings.is_production:
        return envelope(True, message="OTP sent to your email Successfully")
    return envelope(True, message="OTP sent to your email Successfully", otp=otp)


@router.post("/verify-otp/{email}")
def verify_otp(email: str, request: VerifyOtpRequest, db: Session = Depends(get_db)):
    """Check a reset code; a valid code is consumed and unlocks one password change"""
    if not request.otp:
        raise HTTPException(status_code=400, detail="OTP is required")

    user = _find_by_email(db, email)

    if not user.otp or not secrets.compare_digest(user.otp, request.otp.strip()) or _otp_expired(user):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP request a new one")

    user.otp = None
    user.otp_expiry = None
    user.otp_verified = True
    db.commit()
    return envelope(True, message="OTP verified successfully")


@router.post("/change-password/{email}")
def change_password(email: str, request: ChangePasswordRequest, db: Session = Depends(get_db)):
    """Set a new password after the reset code has been verified"""
    if not request.new_password or not request.confirm_password:
        raise HTTPException(status_code=400, detail="All fields are required")

    if request.new_password != request.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")

    user = _find_by_email(db, email)

    if not user.otp_verified:
        raise HTTPException(status_code=403, detail="Verify the OTP before changing your password")

    user.password_hash = hash_password(request.new_password)
    user.otp_verified = False
    db.commit()

    logger.info("Password changed for user %s", user.id)
    return envelope(True, message="Password changed successfully")


@router.get("/me")
def get_profile(user: User = Depends(get_current_user)):
    return envelope(True, data=UserResponse.from_user(user))


@router.put("/update-user")
def update_user(
    updates: UpdateUserRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Update username and health profile; only provided fields change"""
    if updates.username is not None:
        user.username = updates.username
    if updates.health_condition is not None:
        user.health_conditions = updates.health_condition
    if updates.allergies is not None:
        user.allergies = updates.allergies

    db.commit()
    db.refresh(user)

    return envelope(True, message="User profile updated successfully", user=UserResponse.from_user(user))
