import subprocess
import types

import pytest

from deploy_activate.activation.errors import (
    DeactivateError,
    EmptyGenerationListError,
    GenerationListDecodeError,
    RollbackExitError,
    RollbackSpawnError,
    Stage,
)
from deploy_activate.activation.rollback import deactivate, last_generation_id, revoke
from deploy_activate.nix.env_runner import NixEnvRunner

from fakes import ROLLBACK_OPS, FakeNix


def test_deactivate_runs_all_steps_in_order():
    nix = FakeNix()
    deactivate("/p", nix=nix)

    assert nix.ops == ROLLBACK_OPS
    assert nix.calls[2].args == ("/p", "42")


def test_failing_list_generations_stops_before_delete():
    nix = FakeNix(fail={Stage.LIST_GENERATIONS: 1})

    with pytest.raises(RollbackExitError) as exc_info:
        deactivate("/p", nix=nix)

    assert exc_info.value.stage is Stage.LIST_GENERATIONS
    assert nix.ops == ["rollback", "list_generations"]


def test_failing_rollback_runs_nothing_else():
    nix = FakeNix(spawn_fail=[Stage.ROLLBACK])

    with pytest.raises(RollbackSpawnError):
        deactivate("/p", nix=nix)

    assert nix.ops == ["rollback"]


def test_failing_delete_skips_reactivation():
    nix = FakeNix(fail={Stage.DELETE_GENERATION: 1})

    with pytest.raises(DeactivateError):
        deactivate("/p", nix=nix)

    assert "reactivate" not in nix.ops


def test_failing_reactivation_is_reported_once():
    nix = FakeNix(fail={Stage.REACTIVATE: 4})

    with pytest.raises(RollbackExitError) as exc_info:
        deactivate("/p", nix=nix)

    assert exc_info.value.code == 4
    # no second attempt
    assert nix.ops.count("reactivate") == 1


def test_empty_generation_list_fails():
    nix = FakeNix(generations=b"\n\n")

    with pytest.raises(EmptyGenerationListError):
        deactivate("/p", nix=nix)

    assert "delete_generation" not in nix.ops


def test_undecodable_generation_list_fails():
    nix = FakeNix(generations=b"\xff\xfe 1 bad\n")

    with pytest.raises(GenerationListDecodeError):
        deactivate("/p", nix=nix)


def test_last_generation_id_takes_first_token_of_last_line():
    listing = "   1   2024-01-01 10:00:00\n  17   2024-02-01 10:00:00   (current)\n"
    assert last_generation_id(listing) == "17"


def test_revoke_issues_the_documented_commands(monkeypatch):
    calls = []

    def fake_run(argv, capture_output=False, check=False, cwd=None, env=None):
        calls.append(argv)
        out = b"  3   2024-01-01 10:00:00\n  4   2024-01-02 10:00:00\n" if capture_output else b""
        return types.SimpleNamespace(returncode=0, stdout=out, stderr=b"")

    monkeypatch.setattr(subprocess, "run", fake_run)

    revoke("/nix/var/nix/profiles/system", nix=NixEnvRunner())

    assert calls == [
        ["nix-env", "-p", "/nix/var/nix/profiles/system", "--rollback"],
        ["nix-env", "-p", "/nix/var/nix/profiles/system", "--list-generations"],
        ["nix-env", "-p", "/nix/var/nix/profiles/system", "--delete-generations", "4"],
        ["/nix/var/nix/profiles/system/deploy-rs-activate"],
    ]
