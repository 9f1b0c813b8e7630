"""Deviation tracking, adherence aggregation and tier-gated plan adjustment."""
from .aggregator import aggregate
from .checkin import submit_checkin
from .constraints_store import get_constraints, update_constraints
from .policy import evaluate
from .recorder import record_deviation
from .regeneration import request_regeneration
from .summary import project
