"""
Conflict detection over generated schedule items and parsed course slots.

A conflict is two or more entries on the same weekday + period whose week
ranges actually overlap. Sharing a period in disjoint weeks (e.g. weeks 1-6
and 7-8) is not a conflict.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from models.schemas import (
    Conflict, CourseConflict, CourseConflictReport, FixedTimeSlot, ScheduleItem, TimeSlot
)
from service.time_parser import day_name, has_week_overlap, is_week_in_ranges

logger = logging.getLogger(__name__)


def find_week_conflicting_items(items: Sequence[ScheduleItem], selected_week: Optional[int] = None) -> List[ScheduleItem]:
    """
    Return the items of one (weekday, period) group that really collide.

    With a selected week, every item active in that week collides. Without
    one, an item is kept only if its weeks overlap at least one peer's.
    """
    if selected_week is not None:
        return [item for item in items if is_week_in_ranges(selected_week, item.weeks)]

    conflicting = []
    for i, item in enumerate(items):
        if any(
            has_week_overlap(item.weeks, other.weeks)
            for j, other in enumerate(items)
            if j != i
        ):
            conflicting.append(item)
    return conflicting


def detect_time_conflicts(
    schedule: Sequence[ScheduleItem],
    selected_week: Optional[int] = None,
    time_slots: Optional[Sequence[TimeSlot]] = None
) -> List[Conflict]:
    """Group items by (weekday, period) and report every group that collides."""
    slot_names = {ts.id: ts.name for ts in time_slots or []}

    groups: Dict[Tuple[int, str], List[ScheduleItem]] = {}
    for item in schedule:
        groups.setdefault((item.day_of_week, item.time_slot_id), []).append(item)

    conflicts = []
    for (day_of_week, time_slot_id), items in groups.items():
        if len(items) < 2:
            continue

        conflict_items = find_week_conflicting_items(items, selected_week)
        if len(conflict_items) < 2:
            continue

        week_info = f"第{selected_week}周 " if selected_week is not None else ""
        slot_name = slot_names.get(time_slot_id, time_slot_id)
        conflicts.append(Conflict(
            type="time",
            message=f"{week_info}{day_name(day_of_week)} {slot_name} 有多个课程安排",
            items=conflict_items
        ))

    if conflicts:
        logger.info(f"Detected {len(conflicts)} time conflict(s)")
    return conflicts


def slots_collide(slots_a: Sequence[FixedTimeSlot], slots_b: Sequence[FixedTimeSlot]) -> bool:
    """True if any pair shares a weekday and a period in overlapping weeks."""
    for a in slots_a:
        for b in slots_b:
            if a.day_of_week != b.day_of_week:
                continue
            if set(a.time_slot_ids) & set(b.time_slot_ids) and has_week_overlap(a.weeks, b.weeks):
                return True
    return False


def analyze_course_conflicts(courses: Sequence[Tuple[str, Sequence[FixedTimeSlot]]]) -> CourseConflictReport:
    """
    Cross-course conflict analysis for a batch of parsed courses.

    Args:
        courses: (course name, fixed time slots) pairs

    Returns:
        Conflicting (weekday, period) keys with the course names involved,
        plus a resolution suggestion per key
    """
    # (day, period) -> course index -> slots of that course at the key
    index: Dict[Tuple[int, str], Dict[int, List[FixedTimeSlot]]] = {}
    for course_idx, (_, slots) in enumerate(courses):
        for slot in slots:
            for time_slot_id in slot.time_slot_ids:
                key = (slot.day_of_week, time_slot_id)
                index.setdefault(key, {}).setdefault(course_idx, []).append(slot)

    report = CourseConflictReport()
    for (day_of_week, time_slot_id), by_course in index.items():
        if len(by_course) < 2:
            continue

        course_ids = list(by_course.keys())
        involved: List[int] = []
        for pos, idx_a in enumerate(course_ids):
            for idx_b in course_ids[pos + 1:]:
                overlap = any(
                    has_week_overlap(sa.weeks, sb.weeks)
                    for sa in by_course[idx_a]
                    for sb in by_course[idx_b]
                )
                if overlap:
                    for idx in (idx_a, idx_b):
                        if idx not in involved:
                            involved.append(idx)

        if len(involved) < 2:
            continue

        label = f"{day_name(day_of_week)}第{time_slot_id}节"
        names = [courses[idx][0] for idx in involved]
        report.conflicts.append(CourseConflict(
            period_label=label,
            day_of_week=day_of_week,
            time_slot_id=time_slot_id,
            course_names=names
        ))
        if len(names) == 2:
            report.suggestions.append(f"建议调整 \"{names[1]}\" 的上课时间，避开 {label}")
        else:
            report.suggestions.append(f"{label}有{len(names)}门课程冲突，建议重新安排时间")

    return report
