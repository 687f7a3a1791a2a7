"""
Exception hierarchy for the relationship scoring and reminder engine.

Configuration errors are raised to the caller immediately and must never
reach a running evaluation cycle. Runtime evaluation errors are plain
exceptions that the scheduler isolates per contact and per cycle.
"""


class RelationshipEngineError(Exception):
    """Base exception for the relationship engine."""


class ConfigurationError(RelationshipEngineError, ValueError):
    """Raised when a decay, scorer, scheduler or rule configuration is invalid."""


class InvalidParameterError(ConfigurationError):
    """Raised for numeric parameters outside their allowed range."""

    def __init__(self, message: str, parameter: str | None = None):
        super().__init__(message)
        self.parameter = parameter


class UnknownDecayTypeError(ConfigurationError):
    """Raised when a decay configuration names an unsupported curve."""

    def __init__(self, decay_type: str):
        super().__init__(f"Unknown decay type: {decay_type}")
        self.decay_type = decay_type


class InvalidRuleConfigError(ConfigurationError):
    """Raised when a reminder rule is created with a config invalid for its type."""

    def __init__(self, message: str, rule_type: str | None = None):
        super().__init__(message)
        self.rule_type = rule_type
