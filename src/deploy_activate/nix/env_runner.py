# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/nix/env_runner.py

from __future__ import annotations

from pathlib import Path
from typing import Optional

from deploy_activate.activation.errors import Stage
from deploy_activate.utils.execution import CommandRunner

ACTIVATE_SCRIPT = "deploy-rs-activate"


def activation_script(root: str) -> str:
    """Conventional location of a closure's activation hook."""
    return str(Path(root) / ACTIVATE_SCRIPT)


def _flag(value: bool) -> str:
    return "1" if value else "0"


class NixEnvRunner:
    """
    A thin wrapper around the `nix-env` CLI and the activation hook.

    - One method per command the agent issues; argv mirrors what an operator
      would type by hand.
    - Every method raises on spawn failure or non-zero exit.
    - Testable by mocking subprocess.run.
    """

    def __init__(self, nix_env: str = "nix-env", runner: Optional[CommandRunner] = None):
        self.nix_env = nix_env
        self.runner = runner or CommandRunner()

    # ------------------------- internal helpers -------------------------

    def _base(self, profile_path: str) -> list[str]:
        return [self.nix_env, "-p", profile_path]

    # ------------------------- profile commands -------------------------

    def set_profile(self, profile_path: str, closure: str) -> None:
        self.runner.run(self._base(profile_path) + ["--set", closure], stage=Stage.SET_PROFILE)

    def rollback(self, profile_path: str) -> None:
        self.runner.run(self._base(profile_path) + ["--rollback"], stage=Stage.ROLLBACK)

    def list_generations(self, profile_path: str) -> bytes:
        cp = self.runner.run(
            self._base(profile_path) + ["--list-generations"],
            stage=Stage.LIST_GENERATIONS,
            capture_output=True,
        )
        return cp.stdout

    def delete_generation(self, profile_path: str, generation_id: str) -> None:
        self.runner.run(
            self._base(profile_path) + ["--delete-generations", generation_id],
            stage=Stage.DELETE_GENERATION,
        )

    # ------------------------- activation hook -------------------------

    def run_activate(self, root: str, *, dry_activate: bool, boot: bool) -> None:
        self.runner.run(
            [activation_script(root)],
            stage=Stage.RUN_ACTIVATE,
            cwd=root,
            env={
                "PROFILE": root,
                "DRY_ACTIVATE": _flag(dry_activate),
                "BOOT": _flag(boot),
            },
        )

    def reactivate(self, profile_path: str) -> None:
        self.runner.run(
            [activation_script(profile_path)],
            stage=Stage.REACTIVATE,
            cwd=profile_path,
            env={"PROFILE": profile_path},
        )
