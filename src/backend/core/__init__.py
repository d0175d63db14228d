"""Core configuration, security, logging and error types."""
