"""
KeepClos relationship engine.

Scores relationship health from contact interactions and decides when to
prompt the user to reach out again.
"""

__version__ = "0.1.0"
