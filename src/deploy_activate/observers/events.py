# src/deploy_activate/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str             # ISO timestamp
    run_id: str         # correlates all events in a single agent invocation
    profile_path: str
    closure: Optional[str]

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(profile_path: str, closure: Optional[str]) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "run_id": str(uuid.uuid4()),
        "profile_path": profile_path,
        "closure": closure,
    }


# ---------------------------------------------------------------------
# Activation state machine
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StateChanged(BaseEvent):
    previous: str
    state: str


@dataclass(frozen=True)
class ConfirmationWindowOpened(BaseEvent):
    temp_path: str
    timeout_seconds: int


# ---------------------------------------------------------------------
# Rollback
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RollbackStarted(BaseEvent):
    reason: str

@dataclass(frozen=True)
class RollbackResult(BaseEvent):
    ok: bool
    error: Optional[str] = None
