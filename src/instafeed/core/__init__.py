"""Configuration, logging setup and error types."""
