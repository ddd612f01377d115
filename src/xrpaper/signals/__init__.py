"""Level-based signal derivation: overlays, nearest levels, mood and execution plans."""

from xrpaper.signals.execution import execution_guidance, plan_all, plan_execution, risk_reward
from xrpaper.signals.merge import merge_and_sort
from xrpaper.signals.models import (
    ExecutionContext,
    ExecutionPlan,
    IndicatorSnapshot,
    MergedLevel,
    MoodInputs,
    NearestByDistance,
    NearestLevels,
    OverlayInputs,
    OverlayLevel,
    PriceLevel,
)
from xrpaper.signals.mood import (
    AtrBandMoodPolicy,
    MoodPolicy,
    ScoreMoodPolicy,
    atr_percent,
    classify_mood,
    mood_label,
    mood_policy_from_config,
    parse_mood,
)
from xrpaper.signals.nearest import select_nearest, select_nearest_by_distance
from xrpaper.signals.numeric import normalize_number, safe_float
from xrpaper.signals.overlays import build_overlays

__all__ = [
    "AtrBandMoodPolicy",
    "ExecutionContext",
    "ExecutionPlan",
    "IndicatorSnapshot",
    "MergedLevel",
    "MoodInputs",
    "MoodPolicy",
    "NearestByDistance",
    "NearestLevels",
    "OverlayInputs",
    "OverlayLevel",
    "PriceLevel",
    "ScoreMoodPolicy",
    "atr_percent",
    "build_overlays",
    "classify_mood",
    "execution_guidance",
    "merge_and_sort",
    "mood_label",
    "mood_policy_from_config",
    "normalize_number",
    "parse_mood",
    "plan_all",
    "plan_execution",
    "risk_reward",
    "safe_float",
    "select_nearest",
    "select_nearest_by_distance",
]
