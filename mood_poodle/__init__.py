"""
Mood Poodle - a GitHub profile pet whose mood follows your contributions.

This package keeps a single persisted state document, recomputes the poodle's
mood from contribution activity on a schedule, and reacts to "pet" and "feed"
commands posted as GitHub issue comments.
"""

__version__ = "0.1.0"
