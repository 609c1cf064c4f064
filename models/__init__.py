"""
Data models and Pydantic schemas for the course schedule API.
"""
from .schemas import (
    WeekRange,
    TimeSlot,
    FixedTimeSlot,
    Teacher,
    TeacherCreate,
    TeacherUpdate,
    Course,
    CourseCreate,
    CourseUpdate,
    ScheduleItem,
    Conflict,
    SchedulingOptions,
    SchedulingResult,
    RecordLayout,
    ParseDiagnostic,
    TimeLineParse,
    TimeParseResult,
    ParsedCourseRecord,
    ErrorMessage,
    Messages,
    CourseTextParse,
    CourseConflict,
    CourseConflictReport,
    CoursePreviewResponse,
    ImportReport,
    CourseValidationReport,
    TimeTextRequest,
    CourseTextRequest,
    ScheduleRequest,
    WorkspaceState,
    ExportBundle
)

__all__ = [
    "WeekRange",
    "TimeSlot",
    "FixedTimeSlot",
    "Teacher",
    "TeacherCreate",
    "TeacherUpdate",
    "Course",
    "CourseCreate",
    "CourseUpdate",
    "ScheduleItem",
    "Conflict",
    "SchedulingOptions",
    "SchedulingResult",
    "RecordLayout",
    "ParseDiagnostic",
    "TimeLineParse",
    "TimeParseResult",
    "ParsedCourseRecord",
    "ErrorMessage",
    "Messages",
    "CourseTextParse",
    "CourseConflict",
    "CourseConflictReport",
    "CoursePreviewResponse",
    "ImportReport",
    "CourseValidationReport",
    "TimeTextRequest",
    "CourseTextRequest",
    "ScheduleRequest",
    "WorkspaceState",
    "ExportBundle"
]
