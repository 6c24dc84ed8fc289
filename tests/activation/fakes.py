from dataclasses import dataclass
from typing import Dict, List, Optional

from deploy_activate.activation.errors import Stage, exit_error, spawn_error

GENERATIONS = (
    b"   41   2024-05-01 09:12:44\n"
    b"   42   2024-05-02 17:03:10   (current)\n"
)


@dataclass
class Call:
    op: str
    args: tuple


class FakeNix:
    """A controllable stand-in for NixEnvRunner that can fail at any stage."""

    def __init__(
        self,
        fail: Optional[Dict[Stage, int]] = None,
        spawn_fail: Optional[List[Stage]] = None,
        generations: bytes = GENERATIONS,
    ):
        self.calls: List[Call] = []
        self.fail = fail or {}
        self.spawn_fail = spawn_fail or []
        self.generations = generations

    def _check(self, stage: Stage) -> None:
        if stage in self.spawn_fail:
            raise spawn_error(stage, FileNotFoundError(2, "No such file or directory"))
        if stage in self.fail:
            raise exit_error(stage, self.fail[stage])

    def set_profile(self, profile_path, closure):
        self.calls.append(Call("set_profile", (profile_path, closure)))
        self._check(Stage.SET_PROFILE)

    def run_activate(self, root, *, dry_activate, boot):
        self.calls.append(Call("run_activate", (root, dry_activate, boot)))
        self._check(Stage.RUN_ACTIVATE)

    def rollback(self, profile_path):
        self.calls.append(Call("rollback", (profile_path,)))
        self._check(Stage.ROLLBACK)

    def list_generations(self, profile_path):
        self.calls.append(Call("list_generations", (profile_path,)))
        self._check(Stage.LIST_GENERATIONS)
        return self.generations

    def delete_generation(self, profile_path, generation_id):
        self.calls.append(Call("delete_generation", (profile_path, generation_id)))
        self._check(Stage.DELETE_GENERATION)

    def reactivate(self, profile_path):
        self.calls.append(Call("reactivate", (profile_path,)))
        self._check(Stage.REACTIVATE)

    @property
    def ops(self) -> List[str]:
        return [c.op for c in self.calls]


ROLLBACK_OPS = ["rollback", "list_generations", "delete_generation", "reactivate"]


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)
