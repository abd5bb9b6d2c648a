"""Shared fixtures for the test suite."""

from collections.abc import Callable, Iterable

import pytest


class StubInstaller:
    """Installer whose service identity is a plain string."""

    def __init__(self, name: str, dependencies: Iterable[str] = ()):
        self.target_service = name
        self._dependencies = tuple(dependencies)
        self.install_count = 0

    def get_dependencies(self) -> tuple[str, ...]:
        return self._dependencies

    def install_bindings(self) -> None:
        self.install_count += 1

    def __repr__(self) -> str:
        return f"StubInstaller({self.target_service!r})"


@pytest.fixture
def make_installers() -> Callable[[dict[str, list[str]]], dict[str, StubInstaller]]:
    """Build stub installers from a mapping of service name to dependency names."""

    def factory(declarations: dict[str, list[str]]) -> dict[str, StubInstaller]:
        return {name: StubInstaller(name, deps) for name, deps in declarations.items()}

    return factory
