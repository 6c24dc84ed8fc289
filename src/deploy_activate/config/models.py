# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/config/models.py

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Timeouts are carried over the wire as 16-bit seconds.
MAX_TIMEOUT = 65535


class ActivateOptions(BaseModel):
    """Validated arguments of the `activate` subcommand."""

    model_config = ConfigDict(frozen=True)

    closure: str = Field(min_length=1)
    temp_path: Path
    confirm_timeout: int = Field(ge=0, le=MAX_TIMEOUT)
    magic_rollback: bool = False
    auto_rollback: bool = False
    dry_activate: bool = False
    boot: bool = False


class WaitOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    closure: str = Field(min_length=1)
    temp_path: Path
    activation_timeout: Optional[int] = Field(default=None, ge=0, le=MAX_TIMEOUT)
