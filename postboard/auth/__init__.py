"""Authentication: password hashing, JWT session tokens and the session cookie.

A session is a signed JWT carried in an httpOnly cookie named ``token``.
Nothing is stored server side, so logging out only clears the cookie; a
copied token stays valid until it expires.
"""

from .deps import get_config, get_current_session
from .crud import create_user, public_user, verify_user_credentials

__all__ = [
    "get_config",
    "get_current_session",
    "create_user",
    "public_user",
    "verify_user_credentials",
]
