from __future__ import annotations

from passlib.context import CryptContext


# Work factor for pbkdf2_sha256. Fixed so every hash in the users table is
# produced with the same cost; bump it and passlib flags old hashes as
# needing an update on next verify.
PASSWORD_HASH_ROUNDS = 29000

_pwd = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=PASSWORD_HASH_ROUNDS,
)


def hash_password(password: str) -> str:
    """Salted one-way hash of ``password``. A fresh salt is drawn per call."""
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    # A malformed stored hash raises (and becomes a 500); it is not a wrong password.
    if not password or not password_hash:
        return False
    return _pwd.verify(password, password_hash)


def dummy_verify() -> None:
    """Spend the same time as a real verify; used when there is no hash to check."""
    _pwd.dummy_verify()
