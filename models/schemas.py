from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional, Literal
from enum import Enum


# ===========================
# Week / Period Models
# ===========================

class WeekRange(BaseModel):
    """Inclusive range of academic weeks, always stored with start <= end."""
    start: int
    end: int

    @model_validator(mode="after")
    def _normalize(self):
        if self.start > self.end:
            self.start, self.end = self.end, self.start
        return self


class TimeSlot(BaseModel):
    """A named teaching period within a day, e.g. "第5节" 14:30-15:15"""
    id: str
    name: str
    start_time: str  # HH:MM format
    end_time: str    # HH:MM format
    order: int


class FixedTimeSlot(BaseModel):
    """Recurring weekly commitment of a course"""
    day_of_week: int = Field(ge=1, le=7)  # 1 = Monday ... 7 = Sunday
    time_slot_ids: List[str]
    weeks: Optional[List[WeekRange]] = None  # None means the whole term
    location: Optional[str] = None


# ===========================
# Teacher / Course Models
# ===========================

class Teacher(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    subjects: List[str] = []
    unavailable_slots: List[str] = []  # TimeSlot ids


class TeacherCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    subjects: List[str] = []
    unavailable_slots: List[str] = []


class TeacherUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    subjects: Optional[List[str]] = None
    unavailable_slots: Optional[List[str]] = None


def _check_slot_periods(slots: Optional[List[FixedTimeSlot]]):
    """Slots entered by hand must name at least one period."""
    for index, slot in enumerate(slots or [], start=1):
        if not slot.time_slot_ids:
            raise ValueError(f"slot {index} has no periods")
    return slots


class Course(BaseModel):
    id: str
    name: str
    subject: str = ""
    teacher_id: str
    credits: int = 2
    fixed_time_slots: List[FixedTimeSlot] = []
    location: Optional[str] = None
    weeks: Optional[str] = None       # raw display string, e.g. "1-16周"
    teachers: List[str] = []          # teacher names as written in the roster
    department: Optional[str] = None
    campus: Optional[str] = None


class CourseCreate(BaseModel):
    name: str = Field(min_length=1)
    subject: str = ""
    teacher_id: str
    credits: Optional[int] = None
    fixed_time_slots: List[FixedTimeSlot] = []
    location: Optional[str] = None
    weeks: Optional[str] = None
    teachers: List[str] = []
    department: Optional[str] = None
    campus: Optional[str] = None

    @field_validator("fixed_time_slots")
    @classmethod
    def _require_periods(cls, slots):
        return _check_slot_periods(slots)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    subject: Optional[str] = None
    teacher_id: Optional[str] = None
    credits: Optional[int] = None
    fixed_time_slots: Optional[List[FixedTimeSlot]] = None
    location: Optional[str] = None
    weeks: Optional[str] = None
    teachers: Optional[List[str]] = None
    department: Optional[str] = None
    campus: Optional[str] = None

    @field_validator("fixed_time_slots")
    @classmethod
    def _require_periods(cls, slots):
        return _check_slot_periods(slots)


# ===========================
# Schedule Models
# ===========================

class ScheduleItem(BaseModel):
    """One (course, weekday, period) occurrence"""
    id: str
    course_id: str
    teacher_id: str
    time_slot_id: str
    day_of_week: int
    weeks: Optional[List[WeekRange]] = None
    location: Optional[str] = None


class Conflict(BaseModel):
    type: Literal["time"] = "time"
    message: str
    items: List[ScheduleItem]


class SchedulingOptions(BaseModel):
    """Restrict generation to a single week or to a week range"""
    selected_week: Optional[int] = Field(default=None, ge=1)
    week_range: Optional[WeekRange] = None


class SchedulingResult(BaseModel):
    schedule: List[ScheduleItem] = []
    conflicts: List[Conflict] = []
    success: bool
    message: str


# ===========================
# Parsing Models
# ===========================

class RecordLayout(str, Enum):
    """Column layout of a pasted course roster line"""
    AUTO = "auto"
    CREDITS_FIRST = "credits_first"  # name, credits, exam type, department, teachers, campus, schedule...
    TEACHER_FIRST = "teacher_first"  # name, teachers, department, campus, hours, credits, schedule...


class ParseDiagnostic(BaseModel):
    """A fragment of input the parser skipped"""
    line: int      # 1-based line number within the parsed text
    fragment: str
    reason: str


class TimeLineParse(BaseModel):
    weeks: Optional[WeekRange] = None
    time_slots: List[FixedTimeSlot] = []
    location: Optional[str] = None
    diagnostics: List[ParseDiagnostic] = []


class TimeParseResult(BaseModel):
    time_slots: List[FixedTimeSlot] = []
    diagnostics: List[ParseDiagnostic] = []


class ParsedCourseRecord(BaseModel):
    """A course record recovered from pasted roster text"""
    name: str
    teachers: List[str] = []
    department: Optional[str] = None
    campus: Optional[str] = None
    credits: Optional[int] = None
    hours: Optional[int] = None
    exam_type: Optional[str] = None
    time_text: str = ""
    time_slots: List[FixedTimeSlot] = []
    layout: RecordLayout
    needs_review: bool = False
    review_reasons: List[str] = []
    duplicate_periods: List[str] = []
    diagnostics: List[ParseDiagnostic] = []


class ErrorMessage(BaseModel):
    """Error or warning message"""
    title: str
    message: str


class Messages(BaseModel):
    """Collection of error/warning messages"""
    error_message: List[ErrorMessage] = []


class CourseTextParse(BaseModel):
    records: List[ParsedCourseRecord] = []
    messages: Messages = Messages()


class CourseConflict(BaseModel):
    """Courses of one import sharing a weekday + period with overlapping weeks"""
    period_label: str  # e.g. "周一第5节"
    day_of_week: int
    time_slot_id: str
    course_names: List[str]


class CourseConflictReport(BaseModel):
    conflicts: List[CourseConflict] = []
    suggestions: List[str] = []


class CoursePreviewResponse(BaseModel):
    records: List[ParsedCourseRecord] = []
    messages: Messages = Messages()
    conflict_report: CourseConflictReport = CourseConflictReport()


class ImportReport(BaseModel):
    imported: List[Course] = []
    created_teachers: List[Teacher] = []
    needs_review: List[str] = []  # names of imported courses flagged for manual review
    warnings: List[str] = []
    messages: Messages = Messages()


class CourseValidationReport(BaseModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []


# ===========================
# Request Schemas
# ===========================

class TimeTextRequest(BaseModel):
    text: str


class CourseTextRequest(BaseModel):
    text: str
    layout: RecordLayout = RecordLayout.AUTO


class ScheduleRequest(BaseModel):
    """Stateless generation request"""
    courses: List[Course]
    teachers: List[Teacher] = []
    time_slots: Optional[List[TimeSlot]] = None  # defaults to the standard period table
    options: SchedulingOptions = SchedulingOptions()


# ===========================
# Workspace / Export Schemas
# ===========================

class WorkspaceState(BaseModel):
    """All collections owned by the application, persisted together"""
    time_slots: List[TimeSlot] = Field(default=[], alias="timeSlots")
    teachers: List[Teacher] = []
    courses: List[Course] = []
    schedule: List[ScheduleItem] = []

    class Config:
        populate_by_name = True


class ExportBundle(BaseModel):
    schedule: List[ScheduleItem]
    time_slots: List[TimeSlot] = Field(alias="timeSlots")
    courses: List[Course]
    teachers: List[Teacher]
    export_time: str = Field(alias="exportTime")  # ISO-8601, UTC

    class Config:
        populate_by_name = True
