"""Infrastructure: persistence, messaging, and security adapters."""
