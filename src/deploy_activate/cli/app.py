# src/deploy_activate/cli/app.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import typer
from pydantic import ValidationError

from deploy_activate.activation.confirmation import wait as wait_for_canary
from deploy_activate.activation.controller import activate as run_activation
from deploy_activate.activation.errors import ActivationAgentError
from deploy_activate.activation.rollback import revoke as revoke_profile
from deploy_activate.config.models import ActivateOptions, WaitOptions
from deploy_activate.config.settings import load_agent_settings
from deploy_activate.logging.log import LoggerType, init_logging
from deploy_activate.nix.env_runner import NixEnvRunner
from deploy_activate.observers.dispatcher import EventBus
from deploy_activate.observers.logger import LoggerObserver
from deploy_activate.profiles.resolver import resolve_profile_path, selector_from_args
from deploy_activate.supervisor.session import SessionSupervisor


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Remote activation utility for deploy-rs", no_args_is_help=True)


@app.callback()
def main_options(
    ctx: typer.Context,
    debug_logs: bool = typer.Option(False, "--debug-logs", "-d", help="Print debug logs to output"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory to print logs to"),
):
    ctx.obj = {"debug_logs": debug_logs, "log_dir": log_dir}


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def _logger(ctx: typer.Context, logger_type: LoggerType) -> logging.Logger:
    opts = ctx.obj or {}
    logger, _run_id, _ = init_logging(
        logger_type=logger_type,
        log_dir=opts.get("log_dir"),
        debug_logs=opts.get("debug_logs", False),
    )
    return logger


def _validated(model, **values):
    try:
        return model(**values)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _profile_selector(profile_path, profile_user, profile_name):
    try:
        return selector_from_args(profile_path, profile_user, profile_name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _run_or_exit(logger: logging.Logger, fn: Callable[[], object]) -> None:
    """Surface any agent error as an ERROR log line and exit status 1."""
    try:
        fn()
    except ActivationAgentError as err:
        logger.error("%s", err)
        raise typer.Exit(code=1)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def activate(
    ctx: typer.Context,
    closure: str = typer.Argument(..., help="The closure to activate"),
    profile_path: Optional[str] = typer.Option(None, "--profile-path", help="The profile path to install into"),
    profile_user: Optional[str] = typer.Option(
        None, "--profile-user", help="The profile user if explicit profile path is not specified"
    ),
    profile_name: Optional[str] = typer.Option(None, "--profile-name", help="The profile name"),
    confirm_timeout: int = typer.Option(
        ..., "--confirm-timeout", help="Maximum time to wait for confirmation after activation"
    ),
    magic_rollback: bool = typer.Option(
        False, "--magic-rollback", help="Wait for confirmation after deployment and rollback if not confirmed"
    ),
    auto_rollback: bool = typer.Option(False, "--auto-rollback", help="Auto rollback if failure"),
    dry_activate: bool = typer.Option(
        False, "--dry-activate", help="Show what will be activated on the machines"
    ),
    boot: bool = typer.Option(
        False, "--boot", help="Don't activate, but update the boot loader to boot into the new profile"
    ),
    temp_path: Path = typer.Option(
        ..., "--temp-path", help="Path for any temporary files that may be needed during activation"
    ),
):
    """Set the profile to CLOSURE and run its activation script."""
    selector = _profile_selector(profile_path, profile_user, profile_name)
    options = _validated(
        ActivateOptions,
        closure=closure,
        temp_path=temp_path,
        confirm_timeout=confirm_timeout,
        magic_rollback=magic_rollback,
        auto_rollback=auto_rollback,
        dry_activate=dry_activate,
        boot=boot,
    )

    logger = _logger(ctx, LoggerType.ACTIVATE)
    settings = load_agent_settings()

    def _activate():
        resolved = resolve_profile_path(selector, settings)
        logger.debug("profile path: %s", resolved)
        run_activation(
            options,
            resolved,
            nix=NixEnvRunner(settings.nix_env),
            bus=EventBus([LoggerObserver(logger)]),
        )

    _run_or_exit(logger, _activate)


@app.command()
def wait(
    ctx: typer.Context,
    closure: str = typer.Argument(..., help="The closure to wait for"),
    temp_path: Path = typer.Option(
        ..., "--temp-path", help="Path for any temporary files that may be needed during activation"
    ),
    activation_timeout: Optional[int] = typer.Option(
        None, "--activation-timeout", help="Timeout to wait for activation"
    ),
):
    """Block until the host starts its confirmation window for CLOSURE."""
    options = _validated(
        WaitOptions,
        closure=closure,
        temp_path=temp_path,
        activation_timeout=activation_timeout,
    )
    logger = _logger(ctx, LoggerType.WAIT)
    _run_or_exit(
        logger,
        lambda: wait_for_canary(options.temp_path, options.closure, options.activation_timeout),
    )


@app.command()
def revoke(
    ctx: typer.Context,
    profile_path: Optional[str] = typer.Option(None, "--profile-path", help="The profile path to revoke"),
    profile_user: Optional[str] = typer.Option(
        None, "--profile-user", help="The profile user if explicit profile path is not specified"
    ),
    profile_name: Optional[str] = typer.Option(None, "--profile-name", help="The profile name"),
):
    """Roll the profile back to its previous generation."""
    selector = _profile_selector(profile_path, profile_user, profile_name)
    logger = _logger(ctx, LoggerType.REVOKE)
    settings = load_agent_settings()

    _run_or_exit(
        logger,
        lambda: revoke_profile(
            resolve_profile_path(selector, settings),
            nix=NixEnvRunner(settings.nix_env),
        ),
    )


def main() -> None:
    # Ensure that this process stays alive after the SSH connection dies
    SessionSupervisor().start()
    app()


if __name__ == "__main__":
    main()
