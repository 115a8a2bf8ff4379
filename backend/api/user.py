"""User API

Registration endpoint whose parameters are checked by RegisterValidator
before the handler runs.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.logging import api_logger
from core.validation import use_validator
from validator import RegisterValidator

router = APIRouter()

log = api_logger()


class RegisterResponse(BaseModel):
    email: str
    nickname: str
    like: str


@router.post("/register", response_model=RegisterResponse)
async def register(v: RegisterValidator = Depends(use_validator(RegisterValidator))):
    """Register a new account from validated parameters."""
    # Fields without a type rule keep the JSON type the client sent
    user = RegisterResponse(
        email=str(v.get("email")),
        nickname=str(v.get("nickname")),
        like=str(v.get("like")),
    )
    log.info("user_registered", email=user.email, nickname=user.nickname)
    return user
