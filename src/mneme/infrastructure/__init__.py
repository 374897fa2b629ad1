"""Infrastructure layer: store adapters."""
