"""Security: bearer token verification."""
