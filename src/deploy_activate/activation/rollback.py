# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/activation/rollback.py

from __future__ import annotations

import logging

from deploy_activate.activation.errors import EmptyGenerationListError, GenerationListDecodeError
from deploy_activate.nix.env_runner import NixEnvRunner

log = logging.getLogger("deploy_activate")


def last_generation_id(listing: str) -> str:
    """
    First token of the last non-blank line of `nix-env --list-generations`.

    After `--rollback` that line is the generation we just stepped away from.
    """
    lines = [line for line in listing.splitlines() if line.strip()]
    if not lines:
        raise EmptyGenerationListError()
    log.debug("Removing generation entry %s", lines[-1])
    return lines[-1].split()[0]


def deactivate(profile_path: str, *, nix: NixEnvRunner) -> None:
    """
    Revert `profile_path` to its previous generation and re-run its hook.

    1. nix-env --rollback
    2. nix-env --list-generations
    3. pick the newest generation id
    4. nix-env --delete-generations <id>
    5. <profile>/deploy-rs-activate

    The first failing step raises a DeactivateError and nothing after it
    runs. There is no retry and no rollback of the rollback.
    """
    log.warning("De-activating due to error")

    nix.rollback(profile_path)

    log.debug("Listing generations")
    raw = nix.list_generations(profile_path)
    try:
        listing = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise GenerationListDecodeError(exc) from exc

    generation_id = last_generation_id(listing)
    log.warning("Removing generation by ID %s", generation_id)
    nix.delete_generation(profile_path, generation_id)

    log.info("Attempting to re-activate the last generation")
    nix.reactivate(profile_path)


def revoke(profile_path: str, *, nix: NixEnvRunner) -> None:
    deactivate(profile_path, nix=nix)
