"""Infrastructure layer: configuration and application settings."""
