# langlab/credentials/generator.py
"""Secret material for the core service."""

import base64
import logging
import random
import secrets
import string

from langlab.core.errors import SecretGenerationError
from langlab.core.models import SecretBundle

logger = logging.getLogger(__name__)


ALPHANUMERIC = string.ascii_letters + string.digits

# Symbols accepted by the core service password policy
REQUIRED_SYMBOLS = r"!#$%()+,-./:?@[\]^_{~}"

PASSWORD_BASE_LENGTH = 12
PASSWORD_SYMBOL_LENGTH = 3
PASSWORD_MIXED_LENGTH = 4

SECRET_BYTES = 32


class SecretMaterialGenerator:
    """
    Generates the secret bundle for one run.

    The admin password is assembled from three segments (alphanumeric,
    guaranteed symbols, mixed) so the character-class policy holds by
    construction.
    """

    def __init__(self, rng: random.Random | None = None):
        """
        Args:
            rng: Random source for tests; defaults to the ``secrets`` module
        """
        if rng is None:
            self._token_bytes = secrets.token_bytes
            self._choice = secrets.choice
        else:
            self._token_bytes = rng.randbytes
            self._choice = rng.choice

    def generate(self) -> SecretBundle:
        """
        Generate a fresh secret bundle.

        Raises:
            SecretGenerationError: If the random source is unavailable
        """
        logger.info("Generating secure secrets...")

        try:
            bundle = SecretBundle(
                api_key_salt=self._token(),
                jwt_secret=self._token(),
                admin_password=self._password(),
            )
        except (OSError, NotImplementedError) as e:
            raise SecretGenerationError(f"Secure random source unavailable: {e}") from e

        logger.info("✅ Secrets generated successfully")
        return bundle

    def _token(self) -> str:
        return base64.b64encode(self._token_bytes(SECRET_BYTES)).decode("ascii")

    def _password(self) -> str:
        base_part = self._choose(ALPHANUMERIC, PASSWORD_BASE_LENGTH)
        symbol_part = self._choose(REQUIRED_SYMBOLS, PASSWORD_SYMBOL_LENGTH)
        mixed_part = self._choose(ALPHANUMERIC + REQUIRED_SYMBOLS, PASSWORD_MIXED_LENGTH)
        return base_part + symbol_part + mixed_part

    def _choose(self, alphabet: str, length: int) -> str:
        return "".join(self._choice(alphabet) for _ in range(length))
