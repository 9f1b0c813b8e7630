# fitcoach/models/__init__.py
from .user import User
from .subscription import UserSubscription
from .user_constraints import UserConstraints
from .deviation_event import DeviationEvent
from .weekly_checkin import WeeklyCheckin
from .adjustment_history import AdjustmentHistory
from .adjustment_marker import AdjustmentMarker
from .plan_regeneration import PlanRegeneration
from .user_signal import UserSignal
