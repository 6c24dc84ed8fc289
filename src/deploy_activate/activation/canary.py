# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/activation/canary.py

from pathlib import Path

STORE_PREFIX = "/nix/store/"
CANARY_PREFIX = "deploy-rs-canary-"


def closure_hash(closure: str) -> str:
    """`/nix/store/<hash>-<name>` -> `<hash>`."""
    rest = closure[len(STORE_PREFIX):] if closure.startswith(STORE_PREFIX) else closure
    return rest.split("-", 1)[0]


def make_lock_path(temp_path: Path, closure: str) -> Path:
    return Path(temp_path) / f"{CANARY_PREFIX}{closure_hash(closure)}"
