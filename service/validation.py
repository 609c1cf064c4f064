"""
Course data validation and migration of legacy stored data.
"""

import re
import logging
from typing import Any, Dict, List, Sequence

from models.schemas import Course, CourseValidationReport
from service.defaults import UNKNOWN_TEACHER_ID

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Collection names as persisted; "timeSlots" keeps its historical spelling
STATE_COLLECTIONS = ("teachers", "courses", "schedule", "timeSlots")


def validate_course_data(courses: Sequence[Course]) -> CourseValidationReport:
    """Check stored courses for structural problems before they are scheduled."""
    errors: List[str] = []
    warnings: List[str] = []

    for index, course in enumerate(courses, start=1):
        if not course.id:
            errors.append(f"Course {index}: missing id")
        if not course.name:
            errors.append(f"Course {index}: missing name")
        if not course.teacher_id:
            errors.append(f"Course {index}: missing teacher id")

        if not course.fixed_time_slots:
            warnings.append(f"Course {course.name}: no time slots set")

        for slot_index, slot in enumerate(course.fixed_time_slots, start=1):
            if not 1 <= slot.day_of_week <= 7:
                errors.append(f"Course {course.name}, slot {slot_index}: invalid day_of_week ({slot.day_of_week})")
            if not slot.time_slot_ids:
                errors.append(f"Course {course.name}, slot {slot_index}: time_slot_ids is empty")

        if course.credits <= 0:
            warnings.append(f"Course {course.name}: invalid credits ({course.credits})")

    return CourseValidationReport(
        is_valid=not errors,
        errors=errors,
        warnings=warnings
    )


def snake_keys(value: Any) -> Any:
    """Recursively convert camelCase dict keys (browser exports) to snake_case."""
    if isinstance(value, dict):
        return {_CAMEL_RE.sub("_", k).lower(): snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_keys(v) for v in value]
    return value


def migrate_course_data(courses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Bring stored course dicts to the current shape.

    Courses that predate fixed time slots carried a duration (periods per
    session) and frequency (sessions per week); they get default slots
    spread over Monday..Friday that the user is expected to adjust.
    A missing teacher id becomes UNKNOWN_TEACHER_ID; records without an id
    or name are dropped.
    """
    migrated = []
    for raw in courses:
        course = snake_keys(raw)
        if not course.get("id") or not course.get("name"):
            logger.warning(f"Dropping stored course without id or name: {raw}")
            continue

        if isinstance(course.get("fixed_time_slots"), list):
            if not course.get("teacher_id"):
                course["teacher_id"] = UNKNOWN_TEACHER_ID
            migrated.append(course)
            continue

        new_course = {
            "id": course.get("id"),
            "name": course.get("name"),
            "subject": course.get("subject") or "未知学科",
            "teacher_id": course.get("teacher_id") or UNKNOWN_TEACHER_ID,
            "credits": course.get("credits") or 2,
            "location": course.get("location") or course.get("classroom_id"),
            "weeks": course.get("weeks") or "1-16周",
            "fixed_time_slots": [],
        }

        duration = course.get("duration")
        frequency = course.get("frequency")
        if duration and frequency:
            slots = []
            for i in range(frequency):
                start = 1 + (i // 5) * duration
                slots.append({
                    "day_of_week": (i % 5) + 1,
                    "time_slot_ids": [str(start + j) for j in range(duration)],
                })
            new_course["fixed_time_slots"] = slots

        logger.info(f"Migrated legacy course {new_course['name']}")
        migrated.append(new_course)

    return migrated


def migrate_state(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize a persisted state document so WorkspaceState can validate it."""
    state = {}
    for key in STATE_COLLECTIONS:
        items = raw.get(key)
        if items is None and key == "timeSlots":
            items = raw.get("time_slots")
        if not isinstance(items, list):
            continue
        if key == "courses":
            state[key] = migrate_course_data(items)
        else:
            state[key] = snake_keys(items)
    return state
