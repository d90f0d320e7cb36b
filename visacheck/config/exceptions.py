class ConfigurationError(Exception):
    """Raised at start-up when a required provider setting is missing or invalid."""
