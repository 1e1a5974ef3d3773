"""Core utilities: configuration, auth, exceptions, roles and guards."""
