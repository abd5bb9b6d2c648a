"""Installer contract for services.

An installer knows which service it installs, which services must be
installed before it, and how to perform the installation. The dependency
sorter only reads the first two; ``install_bindings`` is left to the caller.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from servicegraph.services.descriptor import ServiceDescriptor


class ServiceInstaller(ABC):
    """Base class for the installer of a service."""

    @property
    @abstractmethod
    def target_service(self) -> ServiceDescriptor:
        """Descriptor of the service this installer installs."""

    def get_dependencies(self) -> tuple[ServiceDescriptor, ...]:
        """Get the services that must be installed before the target service.

        Defaults to the dependencies declared on the target service followed
        by those declared with ``@depends_on`` on the installer class itself.
        """
        service = self.target_service
        own = service.registry.dependencies_of(type(self))
        return tuple(dict.fromkeys(service.get_dependencies() + own))

    @abstractmethod
    def install_bindings(self) -> None:
        """Install the service."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.target_service!r})"


class CallbackInstaller(ServiceInstaller):
    """Installer that delegates installation to a callable.

    Example:
        >>> installer = CallbackInstaller(registry.descriptor_for(AudioService), setup_audio)
        >>> installer.install_bindings()  # calls setup_audio()
    """

    def __init__(
        self,
        target_service: ServiceDescriptor,
        install: Callable[[], object],
        dependencies: Iterable[ServiceDescriptor] | None = None,
    ):
        """Initialize the installer.

        Args:
            target_service: Descriptor of the installed service
            install: Callable performing the installation
            dependencies: Explicit dependencies; when omitted the target
                service's declared dependencies are used
        """
        if target_service is None:
            msg = "target_service must not be None"
            raise ValueError(msg)

        self._target_service = target_service
        self._install = install
        self._dependencies = None if dependencies is None else tuple(dependencies)

    @property
    def target_service(self) -> ServiceDescriptor:
        return self._target_service

    def get_dependencies(self) -> tuple[ServiceDescriptor, ...]:
        if self._dependencies is not None:
            return self._dependencies
        return super().get_dependencies()

    def install_bindings(self) -> None:
        self._install()
