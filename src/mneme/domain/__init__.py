"""Domain layer: pure models, ports and errors."""
