"""Event registration and check-in API."""
