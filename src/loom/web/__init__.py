from .resource import Resource, mount_resource
from .routes import Routes

__all__ = ["Resource", "Routes", "mount_resource"]
