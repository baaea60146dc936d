from passlib.context import CryptContext
from storefront.auth.constants import MIN_PASSWORD_LENGTH
from storefront.config.settings import config_settings

PASS_HASH_SCHEME=config_settings.PASS_HASH_SCHEME

pwd_context = CryptContext(schemes=[PASS_HASH_SCHEME], deprecated="auto")

def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def validate_password(password: str, min_length: int = MIN_PASSWORD_LENGTH) -> tuple[bool, str]:
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters long"
    return True, "OK"


def normalize_email(email: str) -> str:
    return email.strip().lower()
