"""Service identity and description.

A service is any subclass of :class:`Service`. Each service type is identified
and described by a :class:`ServiceDescriptor`, obtained from a
:class:`ServiceRegistry` so that one descriptor exists per service type within
a registry. Registries are ordinary objects owned by the caller; there is no
process-wide cache.

Example:
    >>> class AudioService(Service):
    ...     pass
    >>> @depends_on(AudioService)
    ... class AudioPlayerService(Service):
    ...     pass
    >>> registry = ServiceRegistry()
    >>> player = registry.descriptor_for(AudioPlayerService)
    >>> player.title
    'Audio Player'
    >>> [d.title for d in player.get_dependencies()]
    ['Audio']
"""

import re
from collections.abc import Callable, Iterator

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TITLE_SUFFIX = "Service"

_DEPENDENCIES_ATTR = "__service_dependencies__"
_UNQUALIFIED_MODULES = frozenset({"__main__", "builtins"})

# Word boundaries inside CamelCase names: "audioPlayer" -> "audio|Player",
# "HTTPClient" -> "HTTP|Client".
_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class Service:
    """Base class for services.

    Subclasses carry no behavior of their own; the class itself is the
    identity of the service. Declare dependencies with :func:`depends_on`.
    """


def _is_service_type(value: object) -> bool:
    return isinstance(value, type) and issubclass(value, Service)


def depends_on(*service_types: type[Service]) -> Callable[[type], type]:
    """Class decorator declaring the services a class depends on.

    Works on service classes and on installer classes alike. Stacked
    decorators accumulate, keeping top-to-bottom declaration order.

    Args:
        *service_types: Service classes that must be installed first

    Returns:
        Decorator recording the dependencies on the decorated class

    Raises:
        TypeError: If any argument is not a Service subclass
    """
    for service_type in service_types:
        if not _is_service_type(service_type):
            msg = f"Dependency must be a Service subclass, got {service_type!r}"
            raise TypeError(msg)

    def decorator(cls: type) -> type:
        existing = vars(cls).get(_DEPENDENCIES_ATTR, ())
        added = tuple(t for t in dict.fromkeys(service_types) if t not in existing)
        setattr(cls, _DEPENDENCIES_ATTR, added + existing)
        return cls

    return decorator


def declared_dependencies(type_: type) -> tuple[type[Service], ...]:
    """Return the service types declared with :func:`depends_on` on a class.

    Declarations are not inherited from base classes.
    """
    return tuple(vars(type_).get(_DEPENDENCIES_ATTR, ()))


def nicify_compound_name(name: str, unwanted_suffix: str | None = None) -> str:
    """Turn a compound class name into a human readable title.

    Args:
        name: Class name such as ``AudioPlayerService`` or ``Audio_Player``
        unwanted_suffix: Suffix dropped from the name when present, unless the
            name consists of nothing else

    Returns:
        Space separated title, e.g. ``Audio Player``
    """
    if unwanted_suffix and name.endswith(unwanted_suffix) and name != unwanted_suffix:
        name = name[: -len(unwanted_suffix)]

    words = []
    for part in name.split("_"):
        if part:
            words.extend(_WORD_BOUNDARY.sub(" ", part).split())
    return " ".join(words) or name


def nicify_namespace_qualified_name(namespace: str | None, title: str) -> str:
    """Combine a title with the module it was declared in."""
    if not namespace or namespace in _UNQUALIFIED_MODULES:
        return title
    return f"{title} ({namespace})"


class ServiceDescriptor:
    """Identifies and describes one service type.

    Descriptors compare equal when they describe the same service type.
    Dependencies are resolved lazily through the owning registry, so services
    that declare circular dependencies can still be described.

    Attributes:
        service_type: The Service subclass being described
        title: Human readable name of the service
        title_with_namespace: Title qualified with the declaring module
    """

    def __init__(self, service_type: type[Service], registry: "ServiceRegistry"):
        if not _is_service_type(service_type):
            msg = f"Service type must be a Service subclass, got {service_type!r}"
            raise TypeError(msg)

        self.service_type = service_type
        self.title = nicify_compound_name(service_type.__name__, registry.title_suffix)
        self.title_with_namespace = nicify_namespace_qualified_name(
            service_type.__module__,
            self.title,
        )
        self._registry = registry
        self._dependencies: tuple[ServiceDescriptor, ...] | None = None

    @property
    def registry(self) -> "ServiceRegistry":
        """Registry this descriptor was created by."""
        return self._registry

    def get_dependencies(self) -> tuple["ServiceDescriptor", ...]:
        """Get the services that must be installed before this one."""
        if self._dependencies is None:
            self._dependencies = self._registry.dependencies_of(self.service_type)
        return self._dependencies

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServiceDescriptor):
            return NotImplemented
        return self.service_type is other.service_type

    def __hash__(self) -> int:
        return hash(self.service_type)

    def __repr__(self) -> str:
        return f"ServiceDescriptor({self.service_type.__qualname__})"

    def __str__(self) -> str:
        return self.title_with_namespace


class ServiceRegistry:
    """Creates and caches service descriptors.

    One registry is typically created per application context or per
    resolution run. Within a registry each service type maps to exactly one
    descriptor instance.

    Example:
        >>> registry = ServiceRegistry()
        >>> registry.descriptor_for(AudioService) is registry.descriptor_for(AudioService)
        True
    """

    def __init__(self, title_suffix: str | None = DEFAULT_TITLE_SUFFIX):
        """Initialize an empty registry.

        Args:
            title_suffix: Suffix stripped from class names when building titles
        """
        self.title_suffix = title_suffix
        self._descriptors: dict[type[Service], ServiceDescriptor] = {}

    def descriptor_for(self, service_type: type[Service]) -> ServiceDescriptor:
        """Get the descriptor that identifies the given service type.

        Raises:
            TypeError: If ``service_type`` is not a Service subclass
        """
        descriptor = self._descriptors.get(service_type)
        if descriptor is None:
            descriptor = ServiceDescriptor(service_type, self)
            self._descriptors[service_type] = descriptor
            logger.debug(
                "service_descriptor_created",
                service=descriptor.title_with_namespace,
                descriptor_count=len(self._descriptors),
            )
        return descriptor

    def dependencies_of(self, type_: type) -> tuple[ServiceDescriptor, ...]:
        """Get descriptors for the dependencies declared on a service or installer class."""
        return tuple(self.descriptor_for(t) for t in declared_dependencies(type_))

    def descriptors(self) -> tuple[ServiceDescriptor, ...]:
        """Get every descriptor created by this registry, in creation order."""
        return tuple(self._descriptors.values())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, ServiceDescriptor):
            return self._descriptors.get(item.service_type) is item
        return item in self._descriptors

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(self.descriptors())

    def __len__(self) -> int:
        return len(self._descriptors)
