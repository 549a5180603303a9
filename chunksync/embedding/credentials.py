# chunksync/embedding/credentials.py
"""
Credential resolution for the embedding provider.

Resolution order:
  1. Explicit config value
  2. Provider-specific env var
  3. Generic fallback env var

Providers must NOT read environment variables directly.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from chunksync.logging.logger import get_logger
from chunksync.logging.tags import EMBEDDING

logger = get_logger(__name__)

GENERIC_API_KEY_ENV = "CHUNKSYNC_EMBEDDING_API_KEY"

PROVIDER_ENV_MAP: dict[str, list[str]] = {
    "openai": ["OPENAI_API_KEY"],
}


class CredentialError(RuntimeError):
    """Raised when credentials cannot be resolved."""

    pass


def resolve_api_key(
    *,
    provider: str,
    api_key: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Resolve the API key for an embedding provider.

    Raises:
        CredentialError: If no API key could be resolved.
    """
    env = os.environ if environ is None else environ

    if api_key:
        logger.debug(f"{EMBEDDING} Using API key from explicit config for provider '{provider}'")
        return api_key

    env_vars = PROVIDER_ENV_MAP.get(provider, [])
    for env_name in env_vars:
        value = env.get(env_name)
        if value:
            logger.debug(f"{EMBEDDING} Using API key from env '{env_name}' for provider '{provider}'")
            return value

    fallback = env.get(GENERIC_API_KEY_ENV)
    if fallback:
        return fallback

    expected_str = ", ".join(env_vars + [GENERIC_API_KEY_ENV])
    raise CredentialError(
        f"API key for provider '{provider}' not found. "
        f"Set one of: {expected_str}, or provide 'embedding.api_key' in config."
    )


__all__ = ["CredentialError", "GENERIC_API_KEY_ENV", "PROVIDER_ENV_MAP", "resolve_api_key"]
