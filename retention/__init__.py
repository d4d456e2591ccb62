"""
Retention curve synthesis — sparse day anchors to dense daily curves.
"""

from .base import CurveBuilder, MIN_RETENTION_PCT, usable_anchors
from .log_linear import LogLinearBuilder
from .smart_curvature import SmartCurvatureBuilder
from .curves import synthesize, curve_for, get_builder, interpolate_anchors

__all__ = [
    "CurveBuilder",
    "MIN_RETENTION_PCT",
    "usable_anchors",
    "LogLinearBuilder",
    "SmartCurvatureBuilder",
    "synthesize",
    "curve_for",
    "get_builder",
    "interpolate_anchors",
]
