"""Application layer: DTOs, ports, approver resolution, and approval use cases."""
