"""Configuration loading (YAML, .env, environment) and validation."""
