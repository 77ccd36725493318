"""Engine-wide settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from modelforge.lifecycle.timestamps import DEFAULT_VISITOR

DEFAULT_HASH_KEY = "_id"


@dataclass
class EngineSettings:
    """Settings shared by every model built through the registry.

    Attributes:
        visitor: Identifier stamped into "by" fields for anonymous access
        hash_key: Default hash key field name for models that don't set one
        log_level: Logging level name used by the CLI
        token_secret: HS256 secret for bearer tokens naming the principal
    """

    visitor: str = DEFAULT_VISITOR
    hash_key: str = DEFAULT_HASH_KEY
    log_level: str = "WARNING"
    token_secret: str | None = None

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Create settings from MODELFORGE_* environment variables."""
        return cls(
            visitor=os.environ.get("MODELFORGE_VISITOR", DEFAULT_VISITOR),
            hash_key=os.environ.get("MODELFORGE_HASH_KEY", DEFAULT_HASH_KEY),
            log_level=os.environ.get("MODELFORGE_LOG_LEVEL", "WARNING").upper(),
            token_secret=os.environ.get("MODELFORGE_TOKEN_SECRET") or None,
        )
