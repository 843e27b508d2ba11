import base64
import binascii
import hashlib
import hmac
import os

from ultrabms.config.settings import settings


class PasswordHasher:
    DEFAULT_ALGO = "pbkdf2_sha256"
    SALT_BYTES = 16
    MIN_LENGTH = 8

    @classmethod
    def hash_password(
        cls, password: str, *, iterations: int | None = None
    ) -> tuple[str, str, str, int]:
        if not password or len(password) < cls.MIN_LENGTH:
            raise ValueError(f"Password must have at least {cls.MIN_LENGTH} characters.")

        it = iterations or settings.password_hash_iterations
        salt = os.urandom(cls.SALT_BYTES)

        dk = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            salt,
            it,
        )

        password_hash = base64.b64encode(dk).decode("utf-8")
        password_salt = base64.b64encode(salt).decode("utf-8")
        return (password_hash, password_salt, cls.DEFAULT_ALGO, it)

    @classmethod
    def verify_password(
        cls,
        password: str,
        *,
        password_hash: str,
        password_salt: str,
        iterations: int,
        algo: str,
    ) -> bool:
        if algo != cls.DEFAULT_ALGO:
            return False

        try:
            salt = base64.b64decode(password_salt.encode("utf-8"))
            expected = base64.b64decode(password_hash.encode("utf-8"))
        except (ValueError, binascii.Error):
            return False

        dk = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            salt,
            iterations,
        )
        return hmac.compare_digest(dk, expected)

    @classmethod
    def burn(cls, password: str) -> None:
        """Gasta o mesmo tempo de uma verificação real (e-mail inexistente)."""
        hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            b"\x00" * cls.SALT_BYTES,
            settings.password_hash_iterations,
        )
