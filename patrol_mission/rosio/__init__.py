"""ROS 2 adapters for PlanSys2, Nav2 and patrol telemetry."""

from .action_hub import ActionHubPerformer
from .navigation import Nav2NavigationService
from .plansys2 import PlanSys2Backend
from .qos import ACTION_HUB_QOS, EVENTS_QOS, STATE_QOS, TELEMETRY_QOS
from .telemetry import PoseTracker, SelectorListener

__all__ = [
    "ACTION_HUB_QOS",
    "EVENTS_QOS",
    "STATE_QOS",
    "TELEMETRY_QOS",
    "ActionHubPerformer",
    "Nav2NavigationService",
    "PlanSys2Backend",
    "PoseTracker",
    "SelectorListener",
]
