# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/activation/confirmation.py

from __future__ import annotations

import logging
import os
import queue
import time
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from deploy_activate.activation.canary import make_lock_path
from deploy_activate.activation.errors import (
    CreateConfirmDirError,
    CreateConfirmFileError,
    NoConfirmationError,
    TimesUpError,
    WatchError,
)
from deploy_activate.config.settings import DEFAULT_WAIT_TIMEOUT

log = logging.getLogger("deploy_activate")

# How often the blocking receive checks whether the watch is still alive.
_LIVENESS_INTERVAL = 0.5

# None = the awaited event arrived; an exception = the watch layer failed.
Outcome = Optional[BaseException]


def _send(channel: "queue.Queue[Outcome]", outcome: Outcome) -> None:
    try:
        channel.put_nowait(outcome)
    except queue.Full:
        log.error("Could not send file system event to watcher: channel already holds an outcome")


class _ChannelHandler(FileSystemEventHandler):
    """Forwards at most one outcome per slot into a single-slot channel."""

    def __init__(self, target: Path, channel: "queue.Queue[Outcome]"):
        super().__init__()
        self.target = target
        self.channel = channel

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            super().dispatch(event)
        except Exception as exc:
            log.debug("Got error waiting for file system event, sending on channel")
            _send(self.channel, exc)

    def _is_target(self, event: FileSystemEvent, target: Path) -> bool:
        return not event.is_directory and Path(os.fsdecode(event.src_path)) == target


class _RemovalHandler(_ChannelHandler):
    def on_deleted(self, event: FileSystemEvent) -> None:
        if self._is_target(event, self.target):
            log.debug("Got worthy removal event, sending on channel")
            _send(self.channel, None)


class _CreationHandler(_ChannelHandler):
    def on_created(self, event: FileSystemEvent) -> None:
        try:
            target = self.target.resolve(strict=True)
        except OSError:
            # the canary may not exist yet when other files show up in temp_path
            return
        if self._is_target(event, target):
            log.debug("Got canary creation event, sending on channel")
            _send(self.channel, None)


def _start_watch(directory: Path, handler: _ChannelHandler) -> Observer:
    observer = Observer()
    try:
        observer.schedule(handler, str(directory), recursive=False)
        observer.start()
    except OSError as exc:
        raise WatchError(exc) from exc
    return observer


def _stop_watch(observer: Observer) -> None:
    observer.stop()
    if observer.is_alive():
        observer.join()


def _watch_is_open(observer: Observer) -> bool:
    return observer.is_alive() and all(e.is_alive() for e in observer.emitters)


def danger_zone(
    events: "queue.Queue[Outcome]",
    timeout: float,
    is_open: Callable[[], bool] = lambda: True,
) -> None:
    """
    Block until one outcome arrives on `events` or `timeout` elapses.

    Raises TimesUpError on timeout, WatchError if the watch reported an
    error, and NoConfirmationError if the watch went away without
    delivering anything.
    """
    log.info("Waiting for confirmation event...")

    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TimesUpError(timeout)
        try:
            outcome = events.get(timeout=min(remaining, _LIVENESS_INTERVAL))
            break
        except queue.Empty:
            if is_open():
                continue
        # closed: take whatever landed before the watch stopped
        try:
            outcome = events.get_nowait()
            break
        except queue.Empty:
            raise NoConfirmationError() from None

    if outcome is not None:
        raise WatchError(outcome)


def activation_confirmation(
    temp_path: Path,
    confirm_timeout: Optional[float],
    closure: str,
) -> None:
    """
    Open the confirmation window for `closure`.

    Creates the canary file, then watches for its removal. The watch is set
    up after the file exists, so a confirmation landing in between is not
    seen and ends as a timeout.
    """
    lock_path = make_lock_path(temp_path, closure)

    log.debug("Ensuring parent directory exists for canary file")
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CreateConfirmDirError(exc) from exc

    log.debug("Creating canary file")
    try:
        lock_path.touch()
    except OSError as exc:
        raise CreateConfirmFileError(exc) from exc

    log.debug("Creating filesystem watcher")
    watch_dir = lock_path.parent.resolve()
    channel: "queue.Queue[Outcome]" = queue.Queue(maxsize=1)
    observer = _start_watch(watch_dir, _RemovalHandler(watch_dir / lock_path.name, channel))
    try:
        danger_zone(
            channel,
            DEFAULT_WAIT_TIMEOUT if confirm_timeout is None else confirm_timeout,
            lambda: _watch_is_open(observer),
        )
    finally:
        _stop_watch(observer)


def wait(temp_path: Path, closure: str, activation_timeout: Optional[float] = None) -> None:
    """
    Block until the canary for `closure` is created in `temp_path`.

    The remote side runs this to learn that the host entered its
    confirmation window.
    """
    lock_path = make_lock_path(temp_path, closure)

    channel: "queue.Queue[Outcome]" = queue.Queue(maxsize=1)
    observer = _start_watch(Path(temp_path).resolve(), _CreationHandler(lock_path, channel))
    try:
        # the canary may have been created before the watch existed
        if lock_path.exists():
            log.info("Canary file already present, done waiting!")
            return

        danger_zone(
            channel,
            DEFAULT_WAIT_TIMEOUT if activation_timeout is None else activation_timeout,
            lambda: _watch_is_open(observer),
        )
    finally:
        _stop_watch(observer)

    log.info("Found canary file, done waiting!")
