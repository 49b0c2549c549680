from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime, timedelta
import logging
import secrets
from eonchat.db.session import get_db
from eonchat.models.user import User
from eonchat.models.otp import Otp
from eonchat.schemas.user import (
    OtpRequest,
    OtpVerify,
    PasswordReset,
    SignupResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserSummary,
)
from eonchat.core.auth import (
    authenticate_user,
    create_access_token,
    get_password_hash,
)
from eonchat.core.config import settings
from eonchat.core.email import EmailDeliveryError, otp_reset_email, otp_signup_email, send_email

logger = logging.getLogger(__name__)

router = APIRouter()


def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


def issue_otp(db: Session, email: str) -> str:
    """Replace any outstanding code for ``email`` with a fresh one."""
    otp = generate_otp()
    db.query(Otp).filter(Otp.email == email).delete()
    db.add(Otp(email=email, otp=otp))
    db.commit()
    return otp


def find_valid_otp(db: Session, email: str, otp: str):
    cutoff = datetime.utcnow() - timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
    return db.query(Otp).filter(
        Otp.email == email,
        Otp.otp == otp,
        Otp.created_at >= cutoff
    ).first()


async def deliver_otp(email: str, subject: str, html: str):
    try:
        await run_in_threadpool(send_email, email, subject, html)
    except EmailDeliveryError as e:
        logger.error(f"OTP email to {email} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send OTP"
        )


@router.post("/send-otp")
async def send_otp(payload: OtpRequest, db: Session = Depends(get_db)):
    """Email a verification code to an address not yet linked to an account."""
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already linked to an account")

    otp = issue_otp(db, email)
    await deliver_otp(email, "Your EonChat Verification Code", otp_signup_email(otp))
    return {"message": "OTP sent successfully"}


@router.post("/verify-otp")
async def verify_otp(payload: OtpVerify, db: Session = Depends(get_db)):
    if not find_valid_otp(db, payload.email.lower(), payload.otp):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")
    return {"message": "OTP Verified Successfully"}


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(credentials: UserCreate, db: Session = Depends(get_db)):
    """Register a new user."""
    if db.query(User).filter(User.username == credentials.username).first():
        raise HTTPException(status_code=400, detail="Username already exists")

    if credentials.email and db.query(User).filter(User.email == credentials.email).first():
        raise HTTPException(status_code=400, detail="Email already exists")

    db_user = User(
        username=credentials.username,
        email=credentials.email,
        password_hash=get_password_hash(credentials.password),
        friends=[]
    )

    try:
        db.add(db_user)
        if credentials.email:
            db.query(Otp).filter(Otp.email == credentials.email).delete()
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Username or email already exists")

    logger.info(f"User {db_user.username} signed up")
    return {"message": "User created successfully", "user_id": db_user.id}


@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login user and return access token."""
    user = authenticate_user(db, credentials.username, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(data={"sub": str(user.id), "username": user.username})
    return {"token": token, "token_type": "bearer", "user": UserSummary.model_validate(user)}


@router.post("/forgot-password")
async def forgot_password(payload: OtpRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if not db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=404, detail="No account found with this email")

    otp = issue_otp(db, email)
    await deliver_otp(email, "Reset Your Password", otp_reset_email(otp))
    return {"message": "OTP sent to email"}


@router.post("/reset-password")
async def reset_password(payload: PasswordReset, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if not find_valid_otp(db, email, payload.otp):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="No account found with this email")

    user.password_hash = get_password_hash(payload.new_password)
    db.query(Otp).filter(Otp.email == email).delete()
    db.commit()
    return {"message": "Password updated successfully"}
