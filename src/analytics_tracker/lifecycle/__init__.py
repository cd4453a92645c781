"""Process lifecycle hooks for the analytics tracker."""

from .exit_hook import ExitHook, get_exit_hook

__all__ = ["ExitHook", "get_exit_hook"]
