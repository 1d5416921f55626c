"""Domain layer: models, ports, services and commands."""
