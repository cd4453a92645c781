"""Tests for the process exit hook."""

from __future__ import annotations

from analytics_tracker.lifecycle import ExitHook, get_exit_hook


def test_run_invokes_callbacks_once(exit_hook):
    calls = []
    exit_hook.register(lambda: calls.append("flush"))

    exit_hook.run()
    exit_hook.run()

    assert calls == ["flush"]
    assert exit_hook.fired


def test_failing_callback_does_not_stop_others(exit_hook):
    calls = []

    def broken():
        raise RuntimeError("boom")

    exit_hook.register(broken)
    exit_hook.register(lambda: calls.append("second"))

    exit_hook.run()

    assert calls == ["second"]


def test_unregister_and_duplicate_register(exit_hook):
    calls = []

    def flush():
        calls.append("flush")

    exit_hook.register(flush)
    exit_hook.register(flush)
    exit_hook.unregister(lambda: None)
    exit_hook.run()
    assert calls == ["flush"]

    hook = ExitHook()
    try:
        hook.register(flush)
        hook.unregister(flush)
        hook.run()
    finally:
        hook.close()
    assert calls == ["flush"]


def test_process_hook_is_shared():
    assert get_exit_hook() is get_exit_hook()
