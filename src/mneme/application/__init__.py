"""Application layer: scheduler and services."""
