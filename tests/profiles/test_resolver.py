from pathlib import Path

import pytest

from deploy_activate.activation.errors import NoUserHomeError
from deploy_activate.config.settings import AgentSettings, load_agent_settings
from deploy_activate.profiles.resolver import (
    ExplicitProfile,
    UserProfile,
    resolve_profile_path,
    selector_from_args,
)


def _settings(state_dir, xdg=None, home=None):
    return AgentSettings(nix_env="nix-env", nix_state_dir=str(state_dir), xdg_state_home=xdg, home=home)


def test_explicit_path_is_returned_verbatim(tmp_path: Path):
    s = _settings(tmp_path)
    assert resolve_profile_path(ExplicitProfile("/some/where/profile"), s) == "/some/where/profile"


def test_root_system_profile(tmp_path: Path):
    s = _settings(tmp_path)
    assert resolve_profile_path(UserProfile("root", "system"), s) == f"{tmp_path}/profiles/system"


def test_root_other_profile(tmp_path: Path):
    s = _settings(tmp_path)
    assert resolve_profile_path(UserProfile("root", "foo"), s) == f"{tmp_path}/profiles/per-user/root/foo"


def test_user_with_legacy_directory(tmp_path: Path):
    (tmp_path / "profiles" / "per-user" / "alice").mkdir(parents=True)
    s = _settings(tmp_path, xdg="/ignored")
    assert (
        resolve_profile_path(UserProfile("alice", "foo"), s)
        == f"{tmp_path}/profiles/per-user/alice/foo"
    )


def test_user_without_legacy_directory_uses_xdg_state(tmp_path: Path):
    s = _settings(tmp_path, xdg="/home/alice/.state")
    assert resolve_profile_path(UserProfile("alice", "foo"), s) == "/home/alice/.state/nix/profiles/foo"


def test_user_without_xdg_falls_back_to_home(tmp_path: Path):
    s = _settings(tmp_path, home=Path("/home/alice"))
    assert (
        resolve_profile_path(UserProfile("alice", "foo"), s)
        == "/home/alice/.local/state/nix/profiles/foo"
    )


def test_user_without_any_home_fails(tmp_path: Path):
    s = _settings(tmp_path)
    with pytest.raises(NoUserHomeError) as exc_info:
        resolve_profile_path(UserProfile("alice", "foo"), s)
    assert "alice" in str(exc_info.value)


def test_settings_defaults_from_environment():
    s = load_agent_settings({"HOME": "/home/bob"})
    assert s.nix_state_dir == "/nix/var/nix"
    assert s.nix_env == "nix-env"
    assert s.xdg_state_home is None
    assert s.home == Path("/home/bob")


def test_settings_read_state_dir_and_xdg():
    s = load_agent_settings({"NIX_STATE_DIR": "/state", "XDG_STATE_HOME": "/xdg", "HOME": "/h"})
    assert s.nix_state_dir == "/state"
    assert s.xdg_state_home == "/xdg"


@pytest.mark.parametrize(
    "args",
    [
        (None, None, None),
        ("/p", "root", None),
        ("/p", None, "system"),
        (None, "root", None),
        (None, None, "system"),
    ],
)
def test_invalid_selector_combinations_are_rejected(args):
    with pytest.raises(ValueError):
        selector_from_args(*args)


def test_selector_variants():
    assert selector_from_args("/p", None, None) == ExplicitProfile("/p")
    assert selector_from_args(None, "root", "system") == UserProfile("root", "system")
