"""Domain layer: entities, results and services."""
