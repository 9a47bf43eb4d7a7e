"""One-way password hashing with argon2id.

Digests are self-describing (algorithm, version and cost parameters are
encoded in the string), so changing the configured cost never invalidates
previously stored digests.
"""

import logging

import argon2
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from authkit.config import AuthConfig

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Salted, cost-tunable password hashing."""

    def __init__(
        self,
        time_cost: int = argon2.DEFAULT_TIME_COST,
        memory_cost: int = argon2.DEFAULT_MEMORY_COST,
        parallelism: int = argon2.DEFAULT_PARALLELISM,
    ):
        self._hasher = argon2.PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=argon2.Type.ID,
        )

    @classmethod
    def from_config(cls, config: AuthConfig) -> "PasswordHasher":
        return cls(
            time_cost=config.password_time_cost,
            memory_cost=config.password_memory_cost,
            parallelism=config.password_parallelism,
        )

    def hash(self, secret: str) -> str:
        """Hash a secret. The same secret hashes differently every time."""
        return self._hasher.hash(secret)

    def verify(self, digest: str, secret: str) -> bool:
        """Check a secret against a stored digest.

        A mismatch is a normal outcome and returns False. A digest that
        cannot be parsed is logged and also returns False.
        """
        try:
            return self._hasher.verify(digest, secret)
        except VerifyMismatchError:
            return False
        except InvalidHashError:
            logger.warning("Stored password digest is not a valid argon2 hash")
            return False
        except VerificationError as e:
            logger.warning(f"Password verification failed: {e}")
            return False

    def needs_rehash(self, digest: str) -> bool:
        """Whether a digest was produced with different cost parameters."""
        try:
            return self._hasher.check_needs_rehash(digest)
        except InvalidHashError:
            return False
