# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/deploy_activate/supervisor/session.py

from __future__ import annotations

import logging
import queue
import signal
import threading
from typing import Any, Optional

log = logging.getLogger("deploy_activate")


class SessionSupervisor:
    """
    Keeps the agent alive when the SSH session that started it goes away.

    The signal handler only queues the signal number; a dedicated daemon
    thread drains the queue and logs. Children get the default SIGHUP
    disposition back when they exec.
    """

    def __init__(self, signum: int = signal.SIGHUP):
        self.signum = signum
        self.received = 0
        self.handled = threading.Event()
        self._pending: "queue.SimpleQueue[Optional[int]]" = queue.SimpleQueue()
        self._previous: Any = None
        self._installed = False
        self._thread: Optional[threading.Thread] = None

    def _on_signal(self, signum: int, _frame: Any) -> None:
        self._pending.put(signum)

    def _drain(self) -> None:
        while True:
            signum = self._pending.get()
            if signum is None:
                return
            self.received += 1
            log.warning("Received SIGHUP - ignoring...")
            self.handled.set()

    def start(self) -> "SessionSupervisor":
        """Must be called from the main thread."""
        self._thread = threading.Thread(target=self._drain, name="sighup-guard", daemon=True)
        self._thread.start()
        self._previous = signal.signal(self.signum, self._on_signal)
        self._installed = True
        return self

    def stop(self) -> None:
        if self._installed:
            signal.signal(self.signum, signal.SIG_DFL if self._previous is None else self._previous)
            self._installed = False
        if self._thread is not None:
            self._pending.put(None)
            self._thread.join()
            self._thread = None
