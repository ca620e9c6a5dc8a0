"""Labyrinth of Loss: failure-pattern aggregation and remediation.

Failures are logged as records in a document store, scored with a
time-decayed weighting to find the dominant recurring pattern (the
"Minotaur"), and fed into a remediation loop of drills, XP, streaks and
bounties.
"""

__version__ = "0.1.0"
