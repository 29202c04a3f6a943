"""
Auth service: password hashing and opaque authentication keys.
Uses bcrypt directly (no passlib). Keys are random UUID4 strings stored on the user row;
there is no expiry, a key lives until logout or the next login.
"""
import uuid
import bcrypt

# Bcrypt limit is 72 bytes; use 71 so we never exceed
BCRYPT_MAX_BYTES = 71
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
_BCRYPT_HASH_LENGTH = 60


def _truncate_to_bytes(s: str, max_bytes: int = BCRYPT_MAX_BYTES) -> bytes:
    """Truncate string to at most max_bytes UTF-8; return bytes for bcrypt."""
    if not s:
        return b""
    encoded = s.encode("utf-8")
    if len(encoded) <= max_bytes:
        return encoded
    return encoded[:max_bytes]


def hash_password(password: str) -> str:
    """Hash password for storage. Raises ValueError if password is None."""
    if password is None:
        raise ValueError("password is required")
    raw = _truncate_to_bytes(password)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(raw, salt)
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = _truncate_to_bytes(plain)
    try:
        return bcrypt.checkpw(raw, hashed.encode("utf-8"))
    except Exception:
        return False


def is_password_hash(value: str | None) -> bool:
    """True when value already looks like a bcrypt hash (operators may resend a stored hash)."""
    return bool(value) and value.startswith(_BCRYPT_PREFIXES) and len(value) == _BCRYPT_HASH_LENGTH


def ensure_password_hash(password: str) -> str:
    """Hash password unless it is already a bcrypt hash."""
    return password if is_password_hash(password) else hash_password(password)


def new_authentication_key() -> str:
    return str(uuid.uuid4())
