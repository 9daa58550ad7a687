"""Infrastructure: Firestore, identity providers, SQL, storage and HTTP clients."""
