"""External service configuration (Firebase)."""
