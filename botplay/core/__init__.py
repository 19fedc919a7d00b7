"""Core infrastructure: configuration, logging, exceptions, middleware."""
