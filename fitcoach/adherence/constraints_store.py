# fitcoach/adherence/constraints_store.py
"""
Constraint Store Accessor: reads and writes a user's standing configuration.

Pure data access. Reads never create rows; a user without a row gets the
defaults. Writes stage on the session and leave the commit to the caller.
"""
from dataclasses import replace

from fitcoach.adherence.state import Constraints
from fitcoach.errors import ValidationError
from fitcoach.extensions import db
from fitcoach.models import UserConstraints
from fitcoach.utils import clock

# request key -> column
FIELD_KEYS = {
    "workoutsPerWeek": "workouts_per_week",
    "workoutDurationMinutes": "workout_duration_minutes",
    "equipmentAccess": "equipment_access",
    "preferredWorkoutDays": "preferred_workout_days",
    "weeklyFoodBudget": "weekly_food_budget",
    "mealsPerDay": "meals_per_day",
    "maxCookingTimeMinutes": "max_cooking_time_minutes",
    "proteinTargetGrams": "protein_target_grams",
    "simplifyAfterDeviations": "simplify_after_deviations",
    "preferSimpleMeals": "prefer_simple_meals",
    "preferBudgetMeals": "prefer_budget_meals",
}

_INT_RANGES = {
    "workouts_per_week": (1, 7),
    "workout_duration_minutes": (10, 180),
    "meals_per_day": (1, 6),
    "max_cooking_time_minutes": (5, 240),
}


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _from_row(row: UserConstraints) -> Constraints:
    return Constraints(
        workouts_per_week=row.workouts_per_week,
        workout_duration_minutes=row.workout_duration_minutes,
        equipment_access=tuple(row.equipment_access or ()),
        preferred_workout_days=tuple(row.preferred_workout_days or ()),
        weekly_food_budget=float(row.weekly_food_budget),
        meals_per_day=row.meals_per_day,
        max_cooking_time_minutes=row.max_cooking_time_minutes,
        protein_target_grams=row.protein_target_grams,
        simplify_after_deviations=row.simplify_after_deviations,
        prefer_simple_meals=bool(row.prefer_simple_meals),
        prefer_budget_meals=bool(row.prefer_budget_meals),
    )


def get_constraints(user_id) -> Constraints:
    row = UserConstraints.query.filter_by(user_id=user_id).first()
    if row is None:
        return Constraints()
    return _from_row(row)


def save_constraints(user_id, constraints: Constraints) -> Constraints:
    row = UserConstraints.query.filter_by(user_id=user_id).first()
    if row is None:
        row = UserConstraints(user_id=user_id)
        db.session.add(row)

    for name, value in constraints.to_dict().items():
        setattr(row, name, value)
    row.updated_at = clock.utcnow()
    return constraints


def validate_updates(updates) -> dict:
    """Map a camelCase partial update onto column names, rejecting bad values."""
    if not isinstance(updates, dict) or not updates:
        raise ValidationError("Request body must be a non-empty JSON object")

    unknown = [k for k in updates if k not in FIELD_KEYS]
    if unknown:
        raise ValidationError(f"Unknown constraint fields: {unknown}", fields=unknown)

    clean, bad = {}, []
    for key, value in updates.items():
        name = FIELD_KEYS[key]

        if name in _INT_RANGES:
            low, high = _INT_RANGES[name]
            if not _is_int(value) or not low <= value <= high:
                bad.append(key)
                continue
        elif name == "simplify_after_deviations":
            if not _is_int(value) or value < 1:
                bad.append(key)
                continue
        elif name == "weekly_food_budget":
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                bad.append(key)
                continue
            value = float(value)
        elif name == "protein_target_grams":
            if value is not None and (not _is_int(value) or value <= 0):
                bad.append(key)
                continue
        elif name == "equipment_access":
            if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
                bad.append(key)
                continue
            value = tuple(v.strip() for v in value)
        elif name == "preferred_workout_days":
            if (not isinstance(value, list)
                    or not all(_is_int(d) and 0 <= d <= 6 for d in value)
                    or len(set(value)) != len(value)):
                bad.append(key)
                continue
            value = tuple(value)
        elif name in ("prefer_simple_meals", "prefer_budget_meals"):
            if not isinstance(value, bool):
                bad.append(key)
                continue

        clean[name] = value

    if bad:
        raise ValidationError(f"Invalid values for: {bad}", fields=bad)
    return clean


def update_constraints(user_id, updates) -> Constraints:
    clean = validate_updates(updates)
    merged = replace(get_constraints(user_id), **clean)
    return save_constraints(user_id, merged)
