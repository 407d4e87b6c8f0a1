"""Test runner adapters and adapter selection."""

from __future__ import annotations

from .base import TestRunnerAdapter, full_exception_message
from .console import ConsoleTestRunnerAdapter
from .teamcity import TeamCityTestRunnerAdapter

# Checked in order for "auto"; the console is always present
ADAPTERS = {
    "teamcity": TeamCityTestRunnerAdapter,
    "console": ConsoleTestRunnerAdapter,
}


def get_test_runner_adapter(name: str = "auto") -> TestRunnerAdapter:
    """Return the adapter registered as ``name``, or the first present one for "auto"."""
    if name != "auto":
        try:
            return ADAPTERS[name]()
        except KeyError:
            raise ValueError(f"Unknown test runner adapter: {name}") from None
    for adapter_cls in ADAPTERS.values():
        adapter = adapter_cls()
        if adapter.is_present():
            return adapter
    return ConsoleTestRunnerAdapter()


__all__ = [
    "ADAPTERS",
    "ConsoleTestRunnerAdapter",
    "TeamCityTestRunnerAdapter",
    "TestRunnerAdapter",
    "full_exception_message",
    "get_test_runner_adapter",
]
