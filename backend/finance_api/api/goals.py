# finance_api/api/goals.py
from fastapi import APIRouter, Depends, HTTPException, status

from finance_api.api.deps import get_store
from finance_api.db.models import now_iso
from finance_api.db.store import JsonStore, find_by_id
from finance_api.schemas.goal import GoalCreate, GoalProgressUpdate, GoalUpdate
from finance_api.services.goals import create_goal, goal_estimate, update_goal

router = APIRouter(tags=["goals"])


def _get_or_404(goals, goal_id: str):
    goal = find_by_id(goals, goal_id)
    if not goal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    return goal


@router.get("")
def list_goals(store: JsonStore = Depends(get_store)):
    return {"goals": store.read()["goals"]}


@router.get("/{goal_id}")
def get_goal(goal_id: str, store: JsonStore = Depends(get_store)):
    return {"goal": _get_or_404(store.read()["goals"], goal_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_goal(payload: GoalCreate, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        goal = create_goal(
            db,
            name=payload.name,
            target_amount=payload.target_amount,
            current_amount=payload.current_amount,
            target_date=payload.target_date.isoformat(),
        )
    return {"success": True, "goal": goal}


@router.patch("/{goal_id}/progress")
def set_goal_progress(goal_id: str, payload: GoalProgressUpdate, store: JsonStore = Depends(get_store)):
    """Set current_amount; contributions are summed by the client before calling this."""
    with store.session() as db:
        goal = _get_or_404(db["goals"], goal_id)
        goal["current_amount"] = payload.current_amount
        goal["updated_at"] = now_iso()
    return {"success": True, "goal": goal}


@router.patch("/{goal_id}")
def edit_goal(goal_id: str, payload: GoalUpdate, store: JsonStore = Depends(get_store)):
    updates = payload.model_dump(exclude_none=True)
    if "target_date" in updates:
        updates["target_date"] = updates["target_date"].isoformat()
    with store.session() as db:
        goal = update_goal(db, _get_or_404(db["goals"], goal_id), updates)
    return {"success": True, "goal": goal}


@router.delete("/{goal_id}")
def delete_goal(goal_id: str, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        db["goals"].remove(_get_or_404(db["goals"], goal_id))
    return {"success": True, "message": "Goal deleted successfully"}


@router.get("/{goal_id}/estimate")
def get_goal_estimate(goal_id: str, store: JsonStore = Depends(get_store)):
    return goal_estimate(_get_or_404(store.read()["goals"], goal_id))
