"""Domain models (value objects, enums and configuration)."""
