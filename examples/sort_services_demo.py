"""Demonstration of ordering service installers.

This example declares a handful of services, two of which depend on each
other, sorts their installers, installs what can be installed and prints the
circular dependency report for the rest.
"""

import sys
from pathlib import Path

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from servicegraph import CallbackInstaller, DependencySorter, Service, depends_on
from servicegraph.config import get_config
from servicegraph.log_config import (
    bind_correlation_id,
    configure_from_config,
    get_logger,
    unbind_correlation_id,
)


class StorageService(Service):
    pass


@depends_on(StorageService)
class ProfileService(Service):
    pass


@depends_on(ProfileService)
class MatchmakingService(Service):
    pass


class ChatService(Service):
    pass


@depends_on(ChatService, ProfileService)
class PresenceService(Service):
    pass


depends_on(PresenceService)(ChatService)


@depends_on(PresenceService)
class FriendsListService(Service):
    pass


def main() -> int:
    """Sort the demo services and report the outcome."""
    config = get_config()
    configure_from_config(config)
    bind_correlation_id("demo-run")
    try:
        return _run(config)
    finally:
        unbind_correlation_id()


def _run(config) -> int:
    logger = get_logger(__name__)

    registry = config.create_registry()
    installers = [
        CallbackInstaller(
            registry.descriptor_for(service_type),
            lambda service_type=service_type: logger.info(
                "service_installed",
                service=service_type.__name__,
            ),
        )
        for service_type in (
            FriendsListService,
            MatchmakingService,
            PresenceService,
            ChatService,
            ProfileService,
            StorageService,
        )
    ]

    results = DependencySorter(config.report).sort(installers)

    for installer in results.sorted_installers:
        installer.install_bindings()

    if results.has_circular_dependency:
        print(results.describe_all_cycles())
        for installer in results.blocked_installers:
            print(f"Skipped (waits on a circular dependency): {installer.target_service.title}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
