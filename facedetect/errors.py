"""
Error taxonomy for the face detection pipeline.

Both errors are fatal: the CLI logs them and exits non-zero before any
JSON is written. "No faces", "eye not found" and an empty search region
are NOT errors; they surface as empty results.
"""


class ConfigError(ValueError):
    """Missing required input or an invalid configuration value."""


class ResourceError(RuntimeError):
    """An image or classifier blob could not be read, decoded, or written."""
