# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/activation/controller.py

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, NoReturn, Optional

from deploy_activate.activation.confirmation import activation_confirmation
from deploy_activate.activation.errors import (
    ActivationAgentError,
    BadExitError,
    ConfirmationError,
    DeactivateError,
    RollbackFailedError,
)
from deploy_activate.activation.rollback import deactivate
from deploy_activate.config.models import ActivateOptions
from deploy_activate.nix.env_runner import NixEnvRunner
from deploy_activate.observers.dispatcher import EventBus
from deploy_activate.observers.events import (
    ConfirmationWindowOpened,
    RollbackResult,
    RollbackStarted,
    StateChanged,
    new_ctx,
)

log = logging.getLogger("deploy_activate")

ConfirmFn = Callable[[Path, Optional[float], str], None]


class ActivationState(str, Enum):
    IDLE = "idle"
    SETTING_PROFILE = "setting-profile"
    RUNNING_ACTIVATION_HOOK = "running-activation-hook"
    DRY_REPORT = "dry-report"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    ACTIVATED = "activated"
    ROLLING_BACK = "rolling-back"
    ROLLED_BACK = "rolled-back"
    FAILED = "failed"


class ActivationController:
    """
    One `activate` session: set the profile, run the hook, and optionally
    hold a confirmation window open.

    Any failure after the profile was touched rolls back exactly once when
    allowed to. A missing confirmation always rolls back, whatever
    `auto_rollback` says.
    """

    def __init__(
        self,
        options: ActivateOptions,
        profile_path: str,
        *,
        nix: NixEnvRunner,
        confirm: ConfirmFn = activation_confirmation,
        bus: Optional[EventBus] = None,
    ):
        self.options = options
        self.profile_path = profile_path
        self.nix = nix
        self.confirm = confirm
        self.bus = bus or EventBus()
        self.state = ActivationState.IDLE
        self._ctx = new_ctx(profile_path=profile_path, closure=options.closure)

    # ------------------------- internal helpers -------------------------

    def _transition(self, state: ActivationState) -> None:
        previous, self.state = self.state, state
        log.debug("activation state %s -> %s", previous.value, state.value)
        self.bus.emit(StateChanged(previous=previous.value, state=state.value, **self._ctx))

    def _fail(self, err: ActivationAgentError) -> NoReturn:
        self._transition(ActivationState.FAILED)
        raise err

    def _rollback_then_raise(self, err: ActivationAgentError) -> NoReturn:
        self._transition(ActivationState.ROLLING_BACK)
        self.bus.emit(RollbackStarted(reason=str(err), **self._ctx))
        try:
            deactivate(self.profile_path, nix=self.nix)
        except DeactivateError as rollback_err:
            self.bus.emit(RollbackResult(ok=False, error=str(rollback_err), **self._ctx))
            self._transition(ActivationState.FAILED)
            raise RollbackFailedError(rollback_err, err) from rollback_err
        self.bus.emit(RollbackResult(ok=True, **self._ctx))
        self._transition(ActivationState.ROLLED_BACK)
        raise err

    # ------------------------- phases -------------------------

    def _set_profile(self) -> None:
        log.info("Activating profile")
        self._transition(ActivationState.SETTING_PROFILE)
        try:
            self.nix.set_profile(self.profile_path, self.options.closure)
        except BadExitError as err:
            if self.options.auto_rollback:
                self._rollback_then_raise(err)
            self._fail(err)
        except ActivationAgentError as err:
            self._fail(err)

    def _run_hook(self) -> None:
        opts = self.options
        root = opts.closure if opts.dry_activate else self.profile_path

        log.debug("Running activation script")
        self._transition(ActivationState.RUNNING_ACTIVATION_HOOK)
        try:
            self.nix.run_activate(root, dry_activate=opts.dry_activate, boot=opts.boot)
        except BadExitError as err:
            if opts.dry_activate:
                # a dry activation only reports; its exit status is not a verdict
                log.warning("Dry activation script exited with %s", err.code)
                return
            if opts.auto_rollback:
                self._rollback_then_raise(err)
            self._fail(err)
        except ActivationAgentError as err:
            if opts.auto_rollback and not opts.dry_activate:
                self._rollback_then_raise(err)
            self._fail(err)

    def _confirmation_window(self) -> None:
        opts = self.options
        log.info("Magic rollback is enabled, setting up confirmation hook...")
        self._transition(ActivationState.CONFIRMING)
        self.bus.emit(
            ConfirmationWindowOpened(
                temp_path=str(opts.temp_path),
                timeout_seconds=opts.confirm_timeout,
                **self._ctx,
            )
        )
        try:
            self.confirm(opts.temp_path, opts.confirm_timeout, opts.closure)
        except ConfirmationError as err:
            log.warning("Failed to get activation confirmation: %s", err)
            self._rollback_then_raise(err)

    # ------------------------- entrypoint -------------------------

    def run(self) -> ActivationState:
        opts = self.options

        if not opts.dry_activate:
            self._set_profile()

        self._run_hook()

        if opts.dry_activate:
            self._transition(ActivationState.DRY_REPORT)
            return self.state

        log.info("Activation succeeded!")

        if opts.magic_rollback and not opts.boot:
            self._confirmation_window()
            self._transition(ActivationState.CONFIRMED)
        else:
            self._transition(ActivationState.ACTIVATED)
        return self.state


def activate(
    options: ActivateOptions,
    profile_path: str,
    *,
    nix: NixEnvRunner,
    confirm: ConfirmFn = activation_confirmation,
    bus: Optional[EventBus] = None,
) -> ActivationState:
    return ActivationController(options, profile_path, nix=nix, confirm=confirm, bus=bus).run()
