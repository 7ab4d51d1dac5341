import pytest

from mrdeck.keys import KEYS, KeyBinding, KeyMap


@pytest.mark.parametrize("key", ["q", "ctrl+c"])
def test_quit_matches(key):
    assert KEYS.quit.matches(key)


def test_quit_is_case_sensitive():
    assert not KEYS.quit.matches("Q")


@pytest.mark.parametrize("key", ["h", "b", "left", "esc"])
def test_back_keys(key):
    assert KEYS.back.matches(key)


def test_select_and_navigation():
    assert KEYS.select.matches("enter")
    assert KEYS.down.matches("j")
    assert KEYS.up.matches("up")
    assert not KEYS.up.matches("j")


def test_sync_is_capital_r_and_filter_repo_lowercase():
    assert KEYS.sync.matches("R")
    assert not KEYS.sync.matches("r")
    assert KEYS.filter_repo.matches("r")


def test_custom_binding():
    binding = KeyBinding(("x", "y"), "x", "do it")
    assert binding.matches("y")
    assert not binding.matches("z")


def test_keymap_override_keeps_other_defaults():
    custom = KeyMap(quit=KeyBinding(("x",)))
    assert custom.quit.matches("x")
    assert not custom.quit.matches("q")
    assert custom.up == KEYS.up