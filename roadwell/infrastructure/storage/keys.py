"""Secure storage keys (single source of truth)."""

AUTH_SESSION_KEY = "roadwell-jwt"
DIRECT_USER_ID_KEY = "direct-user-id"
DIRECT_EMAIL_KEY = "direct-user-email"
API_KEY_STORAGE_KEY = "mobile-db-api-key"
DIRECT_CONNECTION_STRING_KEY = "direct-db-connection-string"
FIREBASE_REFRESH_TOKEN_KEY = "firebase-refresh-token"
FIREBASE_TOKEN_EXPIRES_AT_KEY = "firebase-id-token-expires-at"
