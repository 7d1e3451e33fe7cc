"""Token material generation backed by the OS CSPRNG."""

import secrets

from tokengate.core.exceptions import KeyGenerationError
from tokengate.domains.tokens.protocols import TokenGeneratorProtocol


class SecretsTokenGenerator(TokenGeneratorProtocol):
    """Generates url-safe random strings with ``secrets``.

    Args:
        token_bytes: Entropy for keys and secrets.
        verifier_bytes: Entropy for verifiers.
    """

    def __init__(self, token_bytes: int = 32, verifier_bytes: int = 20) -> None:
        self._token_bytes = token_bytes
        self._verifier_bytes = verifier_bytes

    def _generate(self, nbytes: int) -> str:
        try:
            return secrets.token_urlsafe(nbytes)
        except (OSError, NotImplementedError) as e:
            raise KeyGenerationError(f"Entropy source failed: {e}") from e

    def new_key(self) -> str:
        return self._generate(self._token_bytes)

    def new_secret(self) -> str:
        return self._generate(self._token_bytes)

    def new_verifier(self) -> str:
        return self._generate(self._verifier_bytes)
