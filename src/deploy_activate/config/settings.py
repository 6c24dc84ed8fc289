# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/config/settings.py

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_NIX_STATE_DIR = "/nix/var/nix"
DEFAULT_WAIT_TIMEOUT = 240


@dataclass(frozen=True)
class AgentSettings:
    """
    Host environment the agent runs in.

    Everything here comes from the process environment; nothing is read
    from disk.
    """
    nix_env: str
    nix_state_dir: str
    xdg_state_home: Optional[str]
    home: Optional[Path]


def _home_dir() -> Optional[Path]:
    try:
        return Path.home()
    except (KeyError, RuntimeError):
        # no HOME and no passwd entry
        return None


def load_agent_settings(environ: Optional[Mapping[str, str]] = None) -> AgentSettings:
    env = os.environ if environ is None else environ
    return AgentSettings(
        nix_env=env.get("DEPLOY_ACTIVATE_NIX_ENV", "nix-env"),
        nix_state_dir=env.get("NIX_STATE_DIR", DEFAULT_NIX_STATE_DIR),
        xdg_state_home=env.get("XDG_STATE_HOME"),
        home=Path(env["HOME"]) if env.get("HOME") else _home_dir(),
    )
