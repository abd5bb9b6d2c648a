"""Unit tests for service descriptors and the service registry."""

import pytest

from servicegraph.services.descriptor import (
    Service,
    ServiceDescriptor,
    ServiceRegistry,
    declared_dependencies,
    depends_on,
    nicify_compound_name,
    nicify_namespace_qualified_name,
)


class AudioService(Service):
    pass


class InputService(Service):
    pass


@depends_on(AudioService, InputService)
class AudioPlayerService(Service):
    pass


@depends_on(AudioPlayerService)
@depends_on(InputService)
class GameplayService(Service):
    pass


class PingService(Service):
    pass


class TestNicifyNames:
    """Test title generation from class names."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("AudioPlayerService", "Audio Player"),
            ("AudioPlayer", "Audio Player"),
            ("HTTPClientService", "HTTP Client"),
            ("Audio_Player_Service", "Audio Player"),
            ("Service", "Service"),
            ("save2DiskService", "save2 Disk"),
        ],
    )
    def test_nicify_compound_name(self, name, expected):
        """Test splitting compound names and dropping the suffix."""
        assert nicify_compound_name(name, "Service") == expected

    def test_nicify_without_suffix(self):
        """Test that no suffix is removed when none is given."""
        assert nicify_compound_name("AudioService") == "Audio Service"

    def test_namespace_qualified_name(self):
        """Test qualification with a module name."""
        assert nicify_namespace_qualified_name("game.audio", "Audio") == "Audio (game.audio)"
        assert nicify_namespace_qualified_name("__main__", "Audio") == "Audio"
        assert nicify_namespace_qualified_name(None, "Audio") == "Audio"


class TestDependsOn:
    """Test declaring dependencies on classes."""

    def test_declared_dependencies(self):
        """Test that the decorator records dependencies in order."""
        assert declared_dependencies(AudioPlayerService) == (AudioService, InputService)

    def test_stacked_decorators_accumulate(self):
        """Test that stacked decorators keep top to bottom order."""
        assert declared_dependencies(GameplayService) == (AudioPlayerService, InputService)

    def test_undecorated_class_has_no_dependencies(self):
        """Test classes without declarations."""
        assert declared_dependencies(AudioService) == ()
        assert declared_dependencies(PingService) == ()

    def test_declarations_are_not_inherited(self):
        """Test that subclasses do not inherit dependency declarations."""

        class LoudAudioPlayerService(AudioPlayerService):
            pass

        assert declared_dependencies(LoudAudioPlayerService) == ()

    def test_duplicates_are_ignored(self):
        """Test that repeating a dependency records it once."""

        @depends_on(AudioService, AudioService)
        @depends_on(AudioService)
        class EchoService(Service):
            pass

        assert declared_dependencies(EchoService) == (AudioService,)

    def test_rejects_non_service_types(self):
        """Test that only Service subclasses can be dependencies."""
        with pytest.raises(TypeError, match="Service subclass"):
            depends_on(str)
        with pytest.raises(TypeError, match="Service subclass"):
            depends_on(AudioService())


class TestServiceDescriptor:
    """Test descriptor identity and metadata."""

    def test_titles(self):
        """Test descriptor titles."""
        descriptor = ServiceRegistry().descriptor_for(AudioPlayerService)

        assert descriptor.service_type is AudioPlayerService
        assert descriptor.title == "Audio Player"
        assert descriptor.title_with_namespace == f"Audio Player ({__name__})"
        assert str(descriptor) == descriptor.title_with_namespace
        assert repr(descriptor) == "ServiceDescriptor(AudioPlayerService)"

    def test_custom_title_suffix(self):
        """Test a registry with a different suffix."""
        descriptor = ServiceRegistry(title_suffix=None).descriptor_for(AudioPlayerService)

        assert descriptor.title == "Audio Player Service"

    def test_dependencies_resolve_through_registry(self):
        """Test that dependencies are the registry's cached descriptors."""
        registry = ServiceRegistry()

        dependencies = registry.descriptor_for(AudioPlayerService).get_dependencies()

        assert dependencies == (
            registry.descriptor_for(AudioService),
            registry.descriptor_for(InputService),
        )
        assert dependencies[0] is registry.descriptor_for(AudioService)

    def test_equality_by_service_type(self):
        """Test that descriptors of the same type compare equal across registries."""
        first = ServiceRegistry().descriptor_for(AudioService)
        second = ServiceRegistry().descriptor_for(AudioService)

        assert first == second
        assert hash(first) == hash(second)
        assert first != ServiceRegistry().descriptor_for(InputService)
        assert first != "AudioService"

    def test_rejects_non_service_type(self):
        """Test that descriptors only describe Service subclasses."""
        with pytest.raises(TypeError, match="Service subclass"):
            ServiceDescriptor(int, ServiceRegistry())

    def test_circular_declarations_can_be_described(self):
        """Test that services declaring each other do not recurse on construction."""

        class PingPongService(Service):
            pass

        @depends_on(PingPongService)
        class PongService(Service):
            pass

        depends_on(PongService)(PingPongService)
        registry = ServiceRegistry()

        ping = registry.descriptor_for(PingPongService)

        assert ping.get_dependencies()[0].get_dependencies() == (ping,)


class TestServiceRegistry:
    """Test the descriptor registry."""

    def test_one_descriptor_per_type(self):
        """Test that a registry caches descriptors."""
        registry = ServiceRegistry()

        assert registry.descriptor_for(AudioService) is registry.descriptor_for(AudioService)
        assert len(registry) == 1
        assert registry.descriptor_for(AudioService).registry is registry

    def test_registries_are_independent(self):
        """Test that registries do not share state."""
        first = ServiceRegistry()
        second = ServiceRegistry()

        first.descriptor_for(AudioService)

        assert AudioService in first
        assert AudioService not in second
        assert len(second) == 0

    def test_descriptors_in_creation_order(self):
        """Test listing descriptors."""
        registry = ServiceRegistry()
        registry.descriptor_for(InputService)
        registry.descriptor_for(AudioService)

        assert [d.service_type for d in registry.descriptors()] == [InputService, AudioService]
        assert list(registry) == list(registry.descriptors())

    def test_contains_descriptor(self):
        """Test membership of descriptors created by another registry."""
        registry = ServiceRegistry()
        own = registry.descriptor_for(AudioService)

        assert own in registry
        assert ServiceRegistry().descriptor_for(AudioService) not in registry

    def test_dependencies_of_installer_class(self):
        """Test reading declarations from a non-service class."""

        @depends_on(AudioService)
        class AudioInstaller:
            pass

        registry = ServiceRegistry()

        assert registry.dependencies_of(AudioInstaller) == (registry.descriptor_for(AudioService),)

    def test_rejects_non_service_type(self):
        """Test that only Service subclasses get descriptors."""
        with pytest.raises(TypeError):
            ServiceRegistry().descriptor_for(object)
