"""API layer for FinDash."""
