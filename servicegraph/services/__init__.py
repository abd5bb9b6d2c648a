"""Service identity, description and installer contracts.

This module provides the objects the dependency sorter consumes: service
descriptors (hashable identities with display titles), the registry that
creates them, and the installer base classes.
"""

from servicegraph.services.descriptor import (
    Service,
    ServiceDescriptor,
    ServiceRegistry,
    depends_on,
    nicify_compound_name,
)
from servicegraph.services.installer import CallbackInstaller, ServiceInstaller

__all__ = [
    "CallbackInstaller",
    "Service",
    "ServiceDescriptor",
    "ServiceInstaller",
    "ServiceRegistry",
    "depends_on",
    "nicify_compound_name",
]
