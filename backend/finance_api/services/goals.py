# finance_api/services/goals.py
import math
import uuid
from datetime import date, timedelta
from typing import Any, Dict, Optional

from dateutil import parser as dateparser

from finance_api.core.errors import ConflictError
from finance_api.db.models import now_iso, utc_today


def _name_taken(db: Dict[str, Any], name: str, exclude_id: Optional[str] = None) -> bool:
    lowered = name.lower()
    return any(g["name"].lower() == lowered and g["id"] != exclude_id for g in db["goals"])


def create_goal(db: Dict[str, Any], name: str, target_amount: float, current_amount: float,
                target_date: str) -> Dict[str, Any]:
    if _name_taken(db, name):
        raise ConflictError("A goal with this name already exists")
    ts = now_iso()
    goal = {
        "id": str(uuid.uuid4()),
        "name": name,
        "target_amount": target_amount,
        "current_amount": current_amount,
        "target_date": target_date,
        "created_at": ts,
        "updated_at": ts,
    }
    db["goals"].append(goal)
    return goal


def update_goal(db: Dict[str, Any], goal: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    name = updates.get("name")
    if name and name != goal["name"] and _name_taken(db, name, exclude_id=goal["id"]):
        raise ConflictError("A goal with this name already exists")
    goal.update(updates)
    goal["updated_at"] = now_iso()
    return goal


def goal_estimate(goal: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Linear completion estimate.

    daily_rate is current_amount spread over the whole days since the goal was
    created (0 on the creation day). days_to_completion extrapolates the
    remaining amount at that rate and is null while the rate is 0.
    """
    today = today or utc_today()
    target = goal["target_amount"]
    current = goal["current_amount"]
    remaining = target - current

    days_until_target = (date.fromisoformat(goal["target_date"]) - today).days
    created = dateparser.isoparse(goal["created_at"]).date()
    days_since_creation = (today - created).days

    daily_rate = current / days_since_creation if days_since_creation > 0 else 0.0

    days_to_completion = None
    estimated_completion_date = None
    if daily_rate > 0:
        days_to_completion = math.ceil(remaining / daily_rate)
        estimated_completion_date = (today + timedelta(days=days_to_completion)).isoformat()

    return {
        "goal": goal,
        "remaining": remaining,
        "percentage": min(current / target * 100, 100.0),
        "completed": current >= target,
        "days_until_target": days_until_target,
        "days_since_creation": days_since_creation,
        "daily_rate": daily_rate,
        "estimated_completion_date": estimated_completion_date,
        "days_to_completion": days_to_completion,
        "on_track": days_to_completion is not None and days_to_completion <= days_until_target,
    }
