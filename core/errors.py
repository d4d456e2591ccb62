"""
Typed errors raised at the edit/import boundary.
All derive from ValueError so callers can keep a single except clause.
"""

from __future__ import annotations


class PlanError(ValueError):
    """Base class for rejected plan edits and imports."""


class InvalidTimelineRangeError(PlanError):
    """devStart < 0 or opsEnd < 1."""


class DailyWeightsError(PlanError):
    """Custom install-share vector has the wrong length or does not sum to 100."""


class InsufficientAnchorsError(PlanError):
    """Manual interpolation needs at least two retention anchors."""


class InvalidAnchorsError(PlanError):
    """Retention anchor outside [0, 100] or on a negative day."""


class SettingsError(PlanError):
    """Global percentages outside [0, 100] or otherwise unusable."""


class SnapshotFormatError(PlanError):
    """Imported snapshot or retention preset failed the shape check."""
