"""External services: the secondary REST backend."""

from roadwell.infrastructure.external.remote_api import RemoteApiGateway

__all__ = ["RemoteApiGateway"]
