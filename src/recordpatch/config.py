"""Configuration for the merge pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MAX_RECORD_SIZE = 100 * 1024


@dataclass
class RecordPatchConfig:
    """Configuration for the merge pipeline."""

    max_record_size: int = DEFAULT_MAX_RECORD_SIZE
    validate_schema: bool = True

    def __post_init__(self) -> None:
        if self.max_record_size <= 0:
            raise ValueError(f"max_record_size must be positive, got {self.max_record_size}")

    @classmethod
    def from_env(cls) -> RecordPatchConfig:
        """Build config from RECORDPATCH_* environment variables."""
        raw_size = os.getenv("RECORDPATCH_MAX_RECORD_SIZE")
        raw_validate = os.getenv("RECORDPATCH_VALIDATE_SCHEMA")
        config = cls()
        if raw_size:
            config = cls(max_record_size=int(raw_size))
        if raw_validate:
            config.validate_schema = raw_validate.strip().lower() not in ("0", "false", "no", "off")
        return config
