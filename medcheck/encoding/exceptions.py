class EncodingError(Exception):
    """Raised when a captured image cannot be read or encoded."""
