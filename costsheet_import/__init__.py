"""Cost sheet import: extract cost breakdown sheets and reconcile them into PostgreSQL."""

__version__ = "0.1.0"
