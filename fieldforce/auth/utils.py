from datetime import datetime, timedelta, timezone
import secrets
from passlib.context import CryptContext
from jose import jwt, JWTError
from fieldforce.config.settings import config_settings

PASS_HASH_SCHEME=config_settings.PASS_HASH_SCHEME
JWT_SECRET = config_settings.JWT_SECRET
JWT_ALGO = config_settings.JWT_ALGO

ACCESS_TOKEN_EXPIRE_MINUTES = int(config_settings.ACCESS_TOKEN_EXPIRE_MINUTES)

pwd_context = CryptContext(schemes=[PASS_HASH_SCHEME], deprecated="auto")

def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)

def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(user_id,role,expires_dur=ACCESS_TOKEN_EXPIRE_MINUTES):
    now=datetime.now(timezone.utc)
    expiry= now + (timedelta(minutes=expires_dur))
    
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expiry.timestamp()),
        "jti": secrets.token_hex(16),
        "role": role,
    }
    token=jwt.encode(claims=payload,key=JWT_SECRET,algorithm=JWT_ALGO)
    return token

def decode_token(token:str):
    """To verify the signature , expiration and user claims of token"""
    try:
        token_data=jwt.decode(
        token,
        key=JWT_SECRET,
        algorithms=[JWT_ALGO]
        )
        return token_data
    except JWTError:
        return None
