"""Replay of actions queued by the mobile app while offline.

Each item is applied and committed on its own, so one bad item never undoes
the others. Results come back in submission order with the client's ids.
"""

from datetime import datetime

from flask import current_app

from academy.errors import AcademyError, ValidationError
from academy.extensions import db
from academy.models import UserDevice
from academy.services.progress import record_progress


def _video_progress(user_id, data):
    position = data.get("lastWatchedPosition")
    if position is None:
        position = data.get("currentPosition")
    # percentage and completion are recomputed from the durations
    record_progress(
        user_id,
        data.get("moduleId"),
        data.get("courseId"),
        data.get("watchedDuration"),
        data.get("totalDuration"),
        position,
    )


SUPPORTED_ACTIONS = {
    "video_progress": _video_progress,
}


def _apply_item(user_id, item):
    if not isinstance(item, dict):
        raise ValidationError("Sync item must be an object")

    action = item.get("action")
    handler = SUPPORTED_ACTIONS.get(action)
    if handler is None:
        raise ValidationError(f"Unknown sync action: {action}")

    data = item.get("data")
    if not isinstance(data, dict):
        raise ValidationError("Sync item data must be an object")
    handler(user_id, data)


def reconcile(user_id, device_id, items):
    if not isinstance(items, list):
        raise ValidationError("syncData must be an array", "INVALID_SYNC_DATA")

    results = []
    for item in items:
        item_id = item.get("id") if isinstance(item, dict) else None
        try:
            _apply_item(user_id, item)
        except AcademyError as e:
            db.session.rollback()
            results.append({"id": item_id, "success": False, "error": e.message})
            continue
        except Exception:
            db.session.rollback()
            current_app.logger.exception(f"Sync item {item_id} failed for user {user_id}")
            results.append({"id": item_id, "success": False, "error": "Failed to apply item"})
            continue
        results.append({"id": item_id, "success": True})

    device = UserDevice.query.filter_by(user_id=user_id, device_id=device_id).first()
    if device is not None:
        device.last_synced_at = datetime.utcnow()
        db.session.commit()

    synced = sum(1 for r in results if r["success"])
    current_app.logger.info(f"Sync for user {user_id} device {device_id}: {synced}/{len(results)} applied")
    return results
