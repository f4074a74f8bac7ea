"""Persistence layer: SQLAlchemy async engine, ORM models, repositories."""
