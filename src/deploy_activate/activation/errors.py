# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/activation/errors.py

from __future__ import annotations

from enum import Enum
from typing import Optional


class Stage(str, Enum):
    """External command that produced a failure."""

    SET_PROFILE = "set-profile"
    RUN_ACTIVATE = "run-activate"
    ROLLBACK = "rollback"
    LIST_GENERATIONS = "list-generations"
    DELETE_GENERATION = "delete-generation"
    REACTIVATE = "re-activate"


_STAGE_DESCRIPTIONS = {
    Stage.SET_PROFILE: "the command for setting profile",
    Stage.RUN_ACTIVATE: "the activation script",
    Stage.ROLLBACK: "the rollback command",
    Stage.LIST_GENERATIONS: "the command for listing generations",
    Stage.DELETE_GENERATION: "the command for deleting generation",
    Stage.REACTIVATE: "the command for re-activating the last generation",
}

_ROLLBACK_STAGES = {
    Stage.ROLLBACK,
    Stage.LIST_GENERATIONS,
    Stage.DELETE_GENERATION,
    Stage.REACTIVATE,
}


class ActivationAgentError(RuntimeError):
    """Base class for every failure surfaced by the agent."""


class DeactivateError(ActivationAgentError):
    """Base class for failures of the rollback sequence."""


class CommandSpawnError(ActivationAgentError):
    """The external command could not be started at all."""

    def __init__(self, stage: Stage, error: OSError):
        self.stage = stage
        self.error = error
        super().__init__(f"Failed to execute {_STAGE_DESCRIPTIONS[stage]}: {error}")


class BadExitError(ActivationAgentError):
    """
    The external command ran but did not exit with status 0.

    `code` is None when the child was terminated by a signal; the signal
    number is kept in `signal` for diagnostics only.
    """

    def __init__(self, stage: Stage, code: Optional[int], signal: Optional[int] = None):
        self.stage = stage
        self.code = code
        self.signal = signal
        msg = f"{_STAGE_DESCRIPTIONS[stage].capitalize()} resulted in a bad exit code: {code}"
        if signal is not None:
            msg += f" (killed by signal {signal})"
        super().__init__(msg)


class RollbackSpawnError(CommandSpawnError, DeactivateError):
    pass


class RollbackExitError(BadExitError, DeactivateError):
    pass


def spawn_error(stage: Stage, error: OSError) -> CommandSpawnError:
    cls = RollbackSpawnError if stage in _ROLLBACK_STAGES else CommandSpawnError
    return cls(stage, error)


def exit_error(stage: Stage, returncode: int) -> BadExitError:
    """Build the error for a non-zero `subprocess` return code."""
    cls = RollbackExitError if stage in _ROLLBACK_STAGES else BadExitError
    if returncode < 0:
        return cls(stage, None, signal=-returncode)
    return cls(stage, returncode)


class GenerationListDecodeError(DeactivateError):
    def __init__(self, error: UnicodeDecodeError):
        self.error = error
        super().__init__(f"Error converting generation list output to utf8: {error}")


class EmptyGenerationListError(DeactivateError):
    def __init__(self):
        super().__init__("Expected to find a generation in list, but it was empty")


class RollbackFailedError(ActivationAgentError):
    """
    Rolling back after a failure failed as well.

    The rollback is never retried; `cause` is the failure that triggered it.
    """

    def __init__(self, rollback_error: DeactivateError, cause: ActivationAgentError):
        self.rollback_error = rollback_error
        self.cause = cause
        super().__init__(
            f"There was an error de-activating after an error was encountered: {rollback_error} "
            f"(triggered by: {cause})"
        )


# ---------------------------------------------------------------------
# Confirmation window / wait
# ---------------------------------------------------------------------
class ConfirmationError(ActivationAgentError):
    """Base class for failures while waiting on the canary file."""


class CreateConfirmDirError(ConfirmationError):
    def __init__(self, error: OSError):
        self.error = error
        super().__init__(f"Failed to create activation confirmation directory: {error}")


class CreateConfirmFileError(ConfirmationError):
    def __init__(self, error: OSError):
        self.error = error
        super().__init__(f"Failed to create activation confirmation file: {error}")


class WatchError(ConfirmationError):
    def __init__(self, error: BaseException):
        self.error = error
        super().__init__(f"Could not watch for activation sentinel: {error}")


class TimesUpError(ConfirmationError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Timeout elapsed for confirmation ({timeout}s)")


class NoConfirmationError(ConfirmationError):
    def __init__(self):
        super().__init__("Filesystem watch ended without activation confirmation")


# ---------------------------------------------------------------------
# Profile resolution
# ---------------------------------------------------------------------
class NoUserHomeError(ActivationAgentError):
    def __init__(self, user: str):
        self.user = user
        super().__init__(f"Failed to deduce HOME directory for user {user}")
