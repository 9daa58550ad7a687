"""Firestore (REST) and Firebase Auth (Identity Toolkit) infrastructure."""

from roadwell.infrastructure.firebase._rest_client import FirestoreRESTClient, WriteBatch
from roadwell.infrastructure.firebase.client import create_firestore_client
from roadwell.infrastructure.firebase.document_gateway import DocumentStoreGateway, QueryFilters
from roadwell.infrastructure.firebase.identity_toolkit import IdentityToolkitClient
from roadwell.infrastructure.firebase.subscriptions import Subscription

__all__ = [
    "DocumentStoreGateway",
    "FirestoreRESTClient",
    "IdentityToolkitClient",
    "QueryFilters",
    "Subscription",
    "WriteBatch",
    "create_firestore_client",
]
