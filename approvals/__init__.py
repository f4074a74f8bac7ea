"""Approval workflow engine: multi-stage sign-off for back-office state changes."""
