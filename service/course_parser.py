"""
Course roster parser.

Pasted rosters are tab-separated, one course per line, optionally followed by
continuation lines that only carry time descriptions:

    学术规范与论文写作1班	1	考查	计算机学院	叶茂	清水河	11-14周，星期一第3-4节 (立人楼B417)
    15-16周，星期三第3-4节 (立人楼B417)

Two column layouts are known. The layout is taken from an explicit tag when
the caller has one; otherwise it is guessed from the second column and the
record is flagged for review whenever the guess is weak.
"""

import re
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from models.schemas import (
    Course, ErrorMessage, Messages, ParseDiagnostic, ParsedCourseRecord,
    CourseTextParse, RecordLayout, Teacher
)
from service.time_parser import (
    find_duplicate_periods, format_week_ranges, merge_week_ranges,
    parse_course_time_detailed
)

logger = logging.getLogger(__name__)


MIN_FIELDS = 4
SCHEDULE_COLUMN = 6

LAYOUT_COLUMNS: Dict[RecordLayout, Dict[str, int]] = {
    RecordLayout.CREDITS_FIRST: {
        "name": 0, "credits": 1, "exam_type": 2, "department": 3, "teachers": 4, "campus": 5,
    },
    RecordLayout.TEACHER_FIRST: {
        "name": 0, "teachers": 1, "department": 2, "campus": 3, "hours": 4, "credits": 5,
    },
}

BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
CONTINUATION_RE = re.compile(r"\d+\s*[-–]?\s*\d*\s*周|星期[一二三四五六日天]|周[一二三四五六日天]|第\s*\d+")
NUMERIC_RE = re.compile(r"^\d+$")
INT_RE = re.compile(r"\d+")
TEACHER_SPLIT_RE = re.compile(r"[,，、;；]")


class CourseParseError(ValueError):
    """A course record is structurally unusable."""

    def __init__(self, label: str, message: str):
        super().__init__(f"{label}: {message}")
        self.label = label
        self.message = message


def _is_numeric(value: Optional[str]) -> bool:
    return bool(value) and bool(NUMERIC_RE.match(value))


def _first_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    match = INT_RE.search(value)
    return int(match.group(0)) if match else None


def detect_layout(fields: Sequence[str], layout: RecordLayout = RecordLayout.AUTO) -> Tuple[RecordLayout, List[str]]:
    """
    Resolve the column layout of a header line.

    Returns the layout and the reasons a guessed layout should be reviewed.
    An explicit layout is trusted as given.
    """
    if layout != RecordLayout.AUTO:
        return layout, []

    reasons = []
    second_numeric = _is_numeric(fields[1]) if len(fields) > 1 else False
    sixth_numeric = _is_numeric(fields[5]) if len(fields) > 5 else False

    if second_numeric:
        if sixth_numeric:
            reasons.append("second and sixth columns are both numeric; layout guessed as credits_first")
        if len(fields) < SCHEDULE_COLUMN:
            reasons.append("too few columns for credits_first layout")
        return RecordLayout.CREDITS_FIRST, reasons

    if not sixth_numeric:
        reasons.append("no numeric credits column; layout guessed as teacher_first")
    return RecordLayout.TEACHER_FIRST, reasons


def parse_course_record(block: str, layout: RecordLayout = RecordLayout.AUTO) -> ParsedCourseRecord:
    """
    Parse a single course record: one tab-separated header line plus any
    continuation lines carrying extra time descriptions.

    Raises:
        CourseParseError: the block is empty, the header has fewer than four
            fields, the name is missing, or the block holds more than one record
    """
    lines = [ln for ln in (block or "").splitlines() if ln.strip()]
    if not lines:
        raise CourseParseError("EMPTY_RECORD", "course record is empty")

    fields = [f.strip() for f in lines[0].split("\t")]
    if len(fields) < MIN_FIELDS:
        raise CourseParseError(
            "TOO_FEW_FIELDS",
            f"expected at least {MIN_FIELDS} tab-separated fields "
            f"(name, teacher, department, campus), got {len(fields)}"
        )

    time_lines: List[str] = []
    ignored: List[ParseDiagnostic] = []
    for idx, line in enumerate(lines[1:], start=2):
        if "\t" in line:
            raise CourseParseError("MULTIPLE_RECORDS", f"line {idx} starts another course record")
        if CONTINUATION_RE.search(line):
            time_lines.append(line.strip())
        else:
            ignored.append(ParseDiagnostic(line=idx, fragment=line.strip(), reason="not a time description"))

    chosen, reasons = detect_layout(fields, layout)
    columns = LAYOUT_COLUMNS[chosen]

    def column(key: str) -> Optional[str]:
        idx = columns.get(key)
        if idx is None or idx >= len(fields):
            return None
        return fields[idx] or None

    name = column("name")
    if not name:
        raise CourseParseError("MISSING_NAME", "course name column is empty")

    teachers = [t.strip() for t in TEACHER_SPLIT_RE.split(column("teachers") or "") if t.strip()]
    credits = _first_int(column("credits"))
    if credits is None:
        reasons.append("credits not found")

    schedule_columns = [f for f in fields[SCHEDULE_COLUMN:] if f]
    time_text = "\n".join(schedule_columns + time_lines)
    parsed = parse_course_time_detailed(time_text)

    diagnostics = ignored + parsed.diagnostics
    if not parsed.time_slots:
        reasons.append("no time slots parsed")
    if parsed.diagnostics:
        reasons.append(f"{len(parsed.diagnostics)} schedule fragment(s) skipped")

    duplicate_periods = find_duplicate_periods(parsed.time_slots)
    if duplicate_periods:
        reasons.append(f"duplicate periods: {', '.join(duplicate_periods)}")

    return ParsedCourseRecord(
        name=name,
        teachers=teachers,
        department=column("department"),
        campus=column("campus"),
        credits=credits,
        hours=_first_int(column("hours")),
        exam_type=column("exam_type"),
        time_text=time_text,
        time_slots=parsed.time_slots,
        layout=chosen,
        needs_review=bool(reasons),
        review_reasons=reasons,
        duplicate_periods=duplicate_periods,
        diagnostics=diagnostics
    )


def split_records(block: str) -> List[str]:
    """Split a block so every tab-separated line starts a new record."""
    records: List[List[str]] = []
    for line in block.splitlines():
        if not line.strip():
            continue
        if "\t" in line:
            records.append([line])
        elif records:
            records[-1].append(line)
        else:
            logger.debug(f"Ignoring line before the first course record: '{line.strip()}'")
    return ["\n".join(r) for r in records]


def parse_course_text(text: str, layout: RecordLayout = RecordLayout.AUTO) -> CourseTextParse:
    """
    Parse pasted roster text into course records.

    Blocks separated by blank lines are parsed as single records first. A
    block that fails is re-split line by line; records that still fail are
    dropped and reported in the returned messages.
    """
    if not text or not text.strip():
        return CourseTextParse()

    records: List[ParsedCourseRecord] = []
    messages: List[ErrorMessage] = []

    for block in BLOCK_SPLIT_RE.split(text.strip()):
        if not block.strip():
            continue
        try:
            records.append(parse_course_record(block, layout))
            continue
        except CourseParseError as e:
            logger.info(f"Block parse failed ({e.label}), falling back to line split")

        record_texts = split_records(block)
        if not record_texts:
            first_line = block.strip().splitlines()[0]
            logger.warning(f"Dropping block without course records: '{first_line}'")
            messages.append(ErrorMessage(
                title="Course record dropped",
                message=f"'{first_line}': no tab-separated course line found"
            ))
            continue

        for record_text in record_texts:
            try:
                records.append(parse_course_record(record_text, layout))
            except CourseParseError as err:
                first_line = record_text.splitlines()[0].strip()
                logger.warning(f"Dropping course record '{first_line}': {err}")
                messages.append(ErrorMessage(
                    title="Course record dropped",
                    message=f"'{first_line}': {err.message}"
                ))

    return CourseTextParse(records=records, messages=Messages(error_message=messages))


# ===========================
# Teacher matching / Course building
# ===========================

def find_best_matching_teacher(names: Sequence[str], teachers: Sequence[Teacher]) -> Optional[Teacher]:
    """
    Match roster teacher names against known teachers.

    Tries an exact match, then containment in either direction, then the
    last two characters of the name (rosters often abbreviate given names).
    """
    for raw in names or []:
        name = raw.strip()
        if not name:
            continue

        match = next((t for t in teachers if t.name == name), None)
        if match:
            return match

        match = next((t for t in teachers if t.name in name or name in t.name), None)
        if match:
            return match

        if len(name) >= 2:
            short = name[-2:]
            match = next((t for t in teachers if short in t.name), None)
            if match:
                return match

    return None


def describe_weeks(record: ParsedCourseRecord) -> str:
    """Summarize the weeks a course runs, "全学期" if any slot is unrestricted."""
    slots = record.time_slots
    if not slots or any(not s.weeks for s in slots):
        return format_week_ranges(None)
    return format_week_ranges(merge_week_ranges([w for s in slots for w in s.weeks]))


def record_to_course(record: ParsedCourseRecord, course_id: str, teacher_id: str,
                     default_credits: int = 2) -> Course:
    return Course(
        id=course_id,
        name=record.name,
        subject=record.department or "未知学科",
        teacher_id=teacher_id,
        credits=record.credits or default_credits,
        fixed_time_slots=[s.model_copy(deep=True) for s in record.time_slots],
        location=record.time_slots[0].location if record.time_slots else None,
        weeks=describe_weeks(record),
        teachers=list(record.teachers),
        department=record.department,
        campus=record.campus
    )
