# userhub/app/security/hashing.py
from passlib.context import CryptContext

# pbkdf2_sha256 is pure Python in passlib, so no native backend is needed
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return False instead of raising when the stored hash is unusable."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False
