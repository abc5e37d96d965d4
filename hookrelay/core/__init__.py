"""Core modules for hookrelay."""
