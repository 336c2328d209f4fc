"""Tracking plan models, normalization, delta computation, cache, and fetch."""

from .delta import Delta, compute_delta
from .fetch import RegistryClient
from .models import NormalizedEvent, RawTrackingPlan, TrackingPlanEvent
from .normalizer import normalize
from .store import TRACKING_PLAN_FILENAME, load_tracking_plan, write_tracking_plan

__all__ = [
    "Delta",
    "compute_delta",
    "RegistryClient",
    "NormalizedEvent",
    "RawTrackingPlan",
    "TrackingPlanEvent",
    "normalize",
    "TRACKING_PLAN_FILENAME",
    "load_tracking_plan",
    "write_tracking_plan",
]
