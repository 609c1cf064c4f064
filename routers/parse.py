from fastapi import APIRouter
from models.schemas import (
    TimeTextRequest, TimeParseResult, CourseTextRequest, ParsedCourseRecord, CoursePreviewResponse
)
from service.time_parser import parse_course_time_detailed
from service.course_parser import parse_course_record, parse_course_text
from service.conflicts import analyze_course_conflicts

# Create a router instance
router = APIRouter()


@router.post("/parse/time-text", response_model=TimeParseResult)
async def parse_time_text(request: TimeTextRequest):
    """
    Parse schedule lines such as "1-6周，星期一第5-6节 (立人楼B411)".
    
    Slots differing only in their week ranges are merged. Fragments that
    could not be read are returned as diagnostics.
    """
    return parse_course_time_detailed(request.text)


@router.post("/parse/course-record", response_model=ParsedCourseRecord)
async def parse_single_course_record(request: CourseTextRequest):
    """
    Parse exactly one course record.
    
    Structurally invalid records are answered with 400 and the error label.
    """
    return parse_course_record(request.text, request.layout)


@router.post("/parse/courses", response_model=CoursePreviewResponse)
async def preview_courses(request: CourseTextRequest):
    """
    Preview a pasted roster without storing anything.
    
    Returns every recovered record, the records that had to be dropped, and
    the time conflicts between the previewed courses.
    """
    parsed = parse_course_text(request.text, request.layout)
    report = analyze_course_conflicts([(r.name, r.time_slots) for r in parsed.records])
    return CoursePreviewResponse(
        records=parsed.records,
        messages=parsed.messages,
        conflict_report=report
    )
