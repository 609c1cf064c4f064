"""
Course time text parser.

Turns free-form Chinese schedule text such as

    1-6周，星期一第5-6节 星期三第5-6节 (立人楼B411)

into structured FixedTimeSlot records, merges records that only differ in
their week ranges, and provides the week-range helpers used by the scheduler.
"""

import re
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from models.schemas import (
    FixedTimeSlot, ParseDiagnostic, TimeLineParse, TimeParseResult, WeekRange
)

logger = logging.getLogger(__name__)


# Weekday lookup, full ("星期X") and abbreviated ("周X") forms
DAY_MAP: Dict[str, int] = {
    "星期一": 1, "星期二": 2, "星期三": 3, "星期四": 4, "星期五": 5, "星期六": 6, "星期日": 7, "星期天": 7,
    "周一": 1, "周二": 2, "周三": 3, "周四": 4, "周五": 5, "周六": 6, "周日": 7, "周天": 7,
    "一": 1, "二": 2, "三": 3, "四": 4, "五": 5, "六": 6, "日": 7, "天": 7,
}

DAY_NAMES = ["", "周一", "周二", "周三", "周四", "周五", "周六", "周日"]

WHOLE_TERM = "全学期"

_DASH = r"\s*[-–~～]\s*"

WEEK_RANGE_RE = re.compile(rf"(\d+)(?:{_DASH}(\d+))?\s*周?")
WEEK_PREFIX_RE = re.compile(rf"^(\d+(?:{_DASH}\d+)?\s*周?)\s*[，,]")
PERIOD_RE = re.compile(rf"第\s*(\d+)(?:{_DASH}(\d+))?\s*节")
LOCATION_RE = re.compile(r"[(（]([^)）]+)[)）]")
# Any weekday character is captured; unknown ones are reported as diagnostics
DAY_PERIOD_RE = re.compile(rf"(星期|周)(\S)\s*(第\s*\d+(?:{_DASH}\d+)?\s*节)")


def parse_week_range(week_str: str) -> Optional[WeekRange]:
    """
    Parse "a-b周" or "a周" into a WeekRange.

    Returns None when the fragment contains no digits.
    """
    match = WEEK_RANGE_RE.search(week_str or "")
    if not match:
        return None
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else start
    return WeekRange(start=start, end=end)


def parse_time_slots(time_str: str) -> List[str]:
    """Parse "第a-b节" / "第a节" into the period ids a..b as decimal strings."""
    match = PERIOD_RE.search(time_str or "")
    if not match:
        return []
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else start
    return [str(i) for i in range(start, end + 1)]


def parse_location(text: str) -> Optional[str]:
    """Return the content of the first parenthesized group, if any."""
    match = LOCATION_RE.search(text or "")
    return match.group(1).strip() if match else None


def parse_day(day_str: str) -> Optional[int]:
    return DAY_MAP.get(day_str)


def parse_time_line(line: str, line_number: int = 1) -> TimeLineParse:
    """
    Parse one schedule line.

    Every weekday/period occurrence becomes one FixedTimeSlot sharing the
    line's week prefix and location. Occurrences that cannot be interpreted
    are skipped and reported as diagnostics instead of raising.
    """
    trimmed = line.strip()
    diagnostics: List[ParseDiagnostic] = []

    week_match = WEEK_PREFIX_RE.match(trimmed)
    weeks = parse_week_range(week_match.group(1)) if week_match else None

    location_match = LOCATION_RE.search(trimmed)
    location = location_match.group(1).strip() if location_match else None

    # Strip the week prefix and the first location, keeping only day/period content
    time_content = trimmed
    if week_match:
        time_content = time_content[week_match.end():]
    if location_match:
        time_content = LOCATION_RE.sub("", time_content, count=1)
    time_content = time_content.strip()

    time_slots: List[FixedTimeSlot] = []
    for match in DAY_PERIOD_RE.finditer(time_content):
        fragment = match.group(0)
        day_of_week = parse_day(match.group(1) + match.group(2))
        if day_of_week is None:
            logger.debug(f"Skipping '{fragment}': unknown weekday")
            diagnostics.append(ParseDiagnostic(
                line=line_number,
                fragment=fragment,
                reason=f"unknown weekday '{match.group(1)}{match.group(2)}'"
            ))
            continue

        time_slot_ids = parse_time_slots(match.group(3))
        if not time_slot_ids:
            logger.debug(f"Skipping '{fragment}': empty period range")
            diagnostics.append(ParseDiagnostic(
                line=line_number,
                fragment=fragment,
                reason="empty period range"
            ))
            continue

        time_slots.append(FixedTimeSlot(
            day_of_week=day_of_week,
            time_slot_ids=time_slot_ids,
            weeks=[weeks.model_copy()] if weeks else None,
            location=location
        ))

    if not time_slots and not diagnostics and trimmed:
        diagnostics.append(ParseDiagnostic(
            line=line_number,
            fragment=trimmed,
            reason="no weekday/period found"
        ))

    return TimeLineParse(
        weeks=weeks,
        time_slots=time_slots,
        location=location,
        diagnostics=diagnostics
    )


def parse_course_time_detailed(time_text: str) -> TimeParseResult:
    """Parse a multi-line block and keep the diagnostics of every line."""
    if not time_text or not time_text.strip():
        return TimeParseResult()

    all_slots: List[FixedTimeSlot] = []
    diagnostics: List[ParseDiagnostic] = []

    for idx, line in enumerate(time_text.splitlines(), start=1):
        if not line.strip():
            continue
        result = parse_time_line(line, line_number=idx)
        all_slots.extend(result.time_slots)
        diagnostics.extend(result.diagnostics)

    return TimeParseResult(
        time_slots=deduplicate_time_slots(all_slots),
        diagnostics=diagnostics
    )


def parse_course_time(time_text: str) -> List[FixedTimeSlot]:
    """Parse a multi-line block into deduplicated FixedTimeSlots."""
    return parse_course_time_detailed(time_text).time_slots


def deduplicate_time_slots(time_slots: Sequence[FixedTimeSlot]) -> List[FixedTimeSlot]:
    """
    Collapse slots sharing weekday, periods and location into one slot.

    Week ranges of collapsed slots are merged. A slot without week
    information covers the whole term, so it absorbs any ranges of its group.
    """
    groups: Dict[Tuple[int, Tuple[str, ...], str], List[FixedTimeSlot]] = {}
    for slot in time_slots:
        key = (slot.day_of_week, tuple(sorted(slot.time_slot_ids)), slot.location or "")
        groups.setdefault(key, []).append(slot)

    result = []
    for group in groups.values():
        first = group[0]
        if any(not slot.weeks for slot in group):
            weeks = None
        else:
            weeks = merge_week_ranges([w for slot in group for w in slot.weeks])
        result.append(first.model_copy(update={"weeks": weeks}, deep=True))
    return result


def merge_week_ranges(ranges: Sequence[WeekRange]) -> List[WeekRange]:
    """Sort ranges and coalesce the overlapping or adjacent ones."""
    if not ranges:
        return []

    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    merged = [ordered[0].model_copy()]
    for week_range in ordered[1:]:
        current = merged[-1]
        if week_range.start <= current.end + 1:
            current.end = max(current.end, week_range.end)
        else:
            merged.append(week_range.model_copy())
    return merged


def is_week_in_ranges(week: int, ranges: Optional[Sequence[WeekRange]] = None) -> bool:
    """True when no ranges are given (whole term) or any range contains the week."""
    if not ranges:
        return True
    return any(r.start <= week <= r.end for r in ranges)


def has_week_overlap(weeks1: Optional[Sequence[WeekRange]], weeks2: Optional[Sequence[WeekRange]]) -> bool:
    """Two week lists overlap if either is unrestricted or any pair of ranges intersects."""
    if not weeks1 or not weeks2:
        return True
    return any(
        r1.start <= r2.end and r1.end >= r2.start
        for r1 in weeks1
        for r2 in weeks2
    )


def overlaps_target(weeks: Optional[Sequence[WeekRange]], target: WeekRange) -> bool:
    if not weeks:
        return True
    return any(r.start <= target.end and r.end >= target.start for r in weeks)


# ===========================
# Display helpers
# ===========================

def format_week_range(week_range: WeekRange) -> str:
    if week_range.start == week_range.end:
        return f"{week_range.start}周"
    return f"{week_range.start}-{week_range.end}周"


def format_week_ranges(ranges: Optional[Sequence[WeekRange]] = None) -> str:
    if not ranges:
        return WHOLE_TERM
    return "，".join(format_week_range(r) for r in ranges)


def format_periods(time_slot_ids: Sequence[str]) -> str:
    if not time_slot_ids:
        return ""
    if len(time_slot_ids) > 1:
        return f"第{time_slot_ids[0]}-{time_slot_ids[-1]}节"
    return f"第{time_slot_ids[0]}节"


def day_name(day_of_week: int) -> str:
    if 1 <= day_of_week <= 7:
        return DAY_NAMES[day_of_week]
    return "未知"


def format_time_slots(time_slots: Sequence[FixedTimeSlot]) -> str:
    """Render slots the way they are written in rosters, joined with "；"."""
    if not time_slots:
        return "无时间安排"

    parts = []
    for slot in time_slots:
        location = f" ({slot.location})" if slot.location else ""
        parts.append(
            f"{format_week_ranges(slot.weeks)}，{day_name(slot.day_of_week)}"
            f"{format_periods(slot.time_slot_ids)}{location}"
        )
    return "；".join(parts)


def find_duplicate_periods(time_slots: Sequence[FixedTimeSlot]) -> List[str]:
    """List "周X第N节" labels that occur more than once within one course."""
    seen = set()
    duplicates: List[str] = []
    for slot in time_slots:
        for time_slot_id in slot.time_slot_ids:
            label = f"{day_name(slot.day_of_week)}第{time_slot_id}节"
            if label in seen:
                if label not in duplicates:
                    duplicates.append(label)
            else:
                seen.add(label)
    return duplicates
