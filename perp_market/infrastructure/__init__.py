"""Infrastructure layer: port implementations."""
