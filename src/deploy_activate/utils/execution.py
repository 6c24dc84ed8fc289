# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/utils/execution.py

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from deploy_activate.activation.errors import Stage, exit_error, spawn_error

log = logging.getLogger("deploy_activate")

Cmd = Sequence[Union[str, "os.PathLike[str]"]]


@dataclass
class CommandRunner:
    """
    Runs one external command to completion and checks its exit status.

    Commands are never cancelled or retried. Output is inherited from the
    agent unless `capture_output` is set, so activation scripts print
    straight to the operator.
    """
    label: Optional[str] = None

    def run(
        self,
        cmd: Cmd,
        *,
        stage: Stage,
        capture_output: bool = False,
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        label = self.label or stage.value
        argv = [os.fspath(c) for c in cmd]
        log.debug("[%s] $ %s", label, " ".join(argv))

        merged_env = None
        if env:
            merged_env = {**os.environ, **env}

        start = time.time()
        try:
            result = subprocess.run(
                argv,
                capture_output=capture_output,
                check=False,
                cwd=cwd,
                env=merged_env,
            )
        except OSError as exc:
            log.debug("[%s] could not be started: %s", label, exc)
            raise spawn_error(stage, exc) from exc

        log.debug("[%s][exit %s] (%.2fs)", label, result.returncode, time.time() - start)

        if result.returncode != 0:
            if capture_output and result.stderr:
                log.debug("[%s][stderr]\n%s", label, result.stderr.decode("utf-8", "replace").rstrip())
            raise exit_error(stage, result.returncode)

        return result
