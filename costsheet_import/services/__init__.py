"""Reconciliation, batch orchestration and run reporting."""
