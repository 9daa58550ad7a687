"""Ports (Protocols) the application services depend on."""

from roadwell.application.interfaces.auth import IAuthBackend
from roadwell.application.interfaces.gateways import IDocumentGateway, ISubscription
from roadwell.application.interfaces.storage import ISecureStore

__all__ = [
    "IAuthBackend",
    "IDocumentGateway",
    "ISecureStore",
    "ISubscription",
]
