# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/profiles/resolver.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Union

from deploy_activate.activation.errors import NoUserHomeError
from deploy_activate.config.settings import AgentSettings


@dataclass(frozen=True)
class ExplicitProfile:
    """Profile given directly as a path."""
    path: str


@dataclass(frozen=True)
class UserProfile:
    """Profile named by its owner and profile name."""
    user: str
    name: str


ProfileSelector = Union[ExplicitProfile, UserProfile]


def selector_from_args(
    profile_path: Optional[str],
    profile_user: Optional[str],
    profile_name: Optional[str],
) -> ProfileSelector:
    """
    Turn the three CLI options into a selector.

    Exactly one of `profile_path` or (`profile_user`, `profile_name`) must be
    given. Anything else is a usage error and raises ValueError.
    """
    if profile_path is not None:
        if profile_user is not None or profile_name is not None:
            raise ValueError("--profile-path cannot be combined with --profile-user/--profile-name")
        return ExplicitProfile(profile_path)
    if profile_user is None or profile_name is None:
        raise ValueError("either --profile-path or both --profile-user and --profile-name are required")
    return UserProfile(profile_user, profile_name)


def resolve_profile_path(selector: ProfileSelector, settings: AgentSettings) -> str:
    """
    Map a selector onto the on-disk profile path nix uses.

    Follows the nix profile layout: the system profile lives directly under
    `<state>/profiles`, root's other profiles under `per-user/root`, and
    everyone else under `$XDG_STATE_HOME/nix/profiles` unless a legacy
    `per-user/<user>` directory is still around.
    """
    if isinstance(selector, ExplicitProfile):
        return selector.path

    state_dir = settings.nix_state_dir

    if selector.user == "root":
        if selector.name == "system":
            return f"{state_dir}/profiles/system"
        return f"{state_dir}/profiles/per-user/root/{selector.name}"

    legacy_dir = f"{state_dir}/profiles/per-user/{selector.user}"
    if os.path.exists(legacy_dir):
        return f"{legacy_dir}/{selector.name}"

    # same lookup nix does: XDG_STATE_HOME, else ~/.local/state
    user_state = settings.xdg_state_home
    if user_state is None:
        if settings.home is None:
            raise NoUserHomeError(selector.user)
        user_state = f"{settings.home}/.local/state"
    return f"{user_state}/nix/profiles/{selector.name}"
