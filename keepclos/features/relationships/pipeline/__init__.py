"""
Pipeline components for the relationships feature.

Scoring turns raw interaction history into relationship health; the
reminder feature consumes its output.
"""

__all__ = ["scoring"]
