"""Unit tests for installers and sorting real service descriptors."""

import pytest

from servicegraph.graph.sorter import DependencySorter
from servicegraph.services.descriptor import Service, ServiceRegistry, depends_on
from servicegraph.services.installer import CallbackInstaller, ServiceInstaller


class StorageService(Service):
    pass


@depends_on(StorageService)
class ProfileService(Service):
    pass


@depends_on(ProfileService, StorageService)
class LeaderboardService(Service):
    pass


class ChatService(Service):
    pass


class PresenceService(Service):
    pass


depends_on(PresenceService)(ChatService)
depends_on(ChatService)(PresenceService)


@pytest.fixture
def registry() -> ServiceRegistry:
    return ServiceRegistry()


def _installer(registry: ServiceRegistry, service_type, calls=None, **kwargs) -> CallbackInstaller:
    calls = [] if calls is None else calls
    return CallbackInstaller(
        registry.descriptor_for(service_type),
        lambda: calls.append(service_type),
        **kwargs,
    )


class TestServiceInstaller:
    """Test installer contracts."""

    def test_base_class_is_abstract(self):
        """Test that ServiceInstaller cannot be instantiated directly."""
        with pytest.raises(TypeError):
            ServiceInstaller()

    def test_subclass_defaults_to_service_dependencies(self, registry):
        """Test that subclasses inherit dependencies from the target service."""

        class ProfileInstaller(ServiceInstaller):
            @property
            def target_service(self):
                return registry.descriptor_for(ProfileService)

            def install_bindings(self):
                pass

        installer = ProfileInstaller()

        assert installer.get_dependencies() == (registry.descriptor_for(StorageService),)
        assert repr(installer) == "ProfileInstaller(ServiceDescriptor(ProfileService))"

    def test_installer_class_declarations_are_merged(self, registry):
        """Test that depends_on on an installer class adds to the service's dependencies."""

        @depends_on(ChatService, StorageService)
        class ProfileInstaller(ServiceInstaller):
            @property
            def target_service(self):
                return registry.descriptor_for(ProfileService)

            def install_bindings(self):
                pass

        assert ProfileInstaller().get_dependencies() == (
            registry.descriptor_for(StorageService),
            registry.descriptor_for(ChatService),
        )

    def test_installer_class_dependencies_affect_sorting(self, registry):
        """Test that the sorter honours dependencies declared on an installer class."""
        calls = []

        @depends_on(LeaderboardService)
        class StorageInstaller(ServiceInstaller):
            @property
            def target_service(self):
                return registry.descriptor_for(StorageService)

            def install_bindings(self):
                calls.append(StorageService)

        storage = StorageInstaller()
        leaderboard = _installer(registry, LeaderboardService, dependencies=[])

        results = DependencySorter().sort([storage, leaderboard])

        assert results.sorted_installers == (leaderboard, storage)

    def test_callback_installer_installs(self, registry):
        """Test that install_bindings calls the callback."""
        calls = []
        installer = _installer(registry, StorageService, calls)

        installer.install_bindings()

        assert calls == [StorageService]
        assert installer.target_service == registry.descriptor_for(StorageService)

    def test_callback_installer_explicit_dependencies(self, registry):
        """Test that explicit dependencies override the declared ones."""
        installer = _installer(registry, ProfileService, dependencies=[])

        assert installer.get_dependencies() == ()

    def test_callback_installer_requires_target(self):
        """Test that a target service is required."""
        with pytest.raises(ValueError, match="target_service must not be None"):
            CallbackInstaller(None, lambda: None)


class TestSortingServices:
    """Test sorting installers built from service descriptors."""

    def test_installation_order(self, registry):
        """Test that installing in sorted order satisfies every dependency."""
        calls = []
        installers = [
            _installer(registry, LeaderboardService, calls),
            _installer(registry, ProfileService, calls),
            _installer(registry, StorageService, calls),
        ]

        results = DependencySorter().sort(installers)
        for installer in results.raise_for_cycles().sorted_installers:
            installer.install_bindings()

        assert calls == [StorageService, ProfileService, LeaderboardService]

    def test_missing_installer_treated_as_installed(self, registry):
        """Test sorting when a dependency has no installer in the input."""
        installers = [_installer(registry, LeaderboardService), _installer(registry, ProfileService)]

        results = DependencySorter().sort(installers)

        assert [i.target_service.service_type for i in results.sorted_installers] == [
            ProfileService,
            LeaderboardService,
        ]

    def test_circular_services_report_titles(self, registry):
        """Test that diagnostics name services by qualified title."""
        chat = _installer(registry, ChatService)
        presence = _installer(registry, PresenceService)

        results = DependencySorter().sort([chat, presence, _installer(registry, StorageService)])

        assert results.has_circular_dependency
        assert results.describe_cycle(chat) == (
            f"Has Circular Dependency:\n\n  ➜ Presence ({__name__})"
        )
        assert results.describe_all_cycles() == (
            f"Has circular dependency\n\nChat ({__name__})\n  ➜ Presence ({__name__})"
        )
