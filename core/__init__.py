"""Core capabilities for openwork agent sessions."""
