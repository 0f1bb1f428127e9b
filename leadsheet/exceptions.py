"""Custom exceptions for leadsheet."""


class LeadSheetError(Exception):
    """Base exception for leadsheet."""


class ValidationError(LeadSheetError):
    """Invalid anchor or geometry input supplied by a caller."""


class ConfigError(LeadSheetError):
    """Invalid configuration value."""
