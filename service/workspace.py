"""
Workspace operations.

Every operation takes the current WorkspaceState and returns a new one;
callers persist the returned state through a ScheduleStore.
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from config import settings
from models.schemas import (
    Course, CourseCreate, CourseUpdate, ErrorMessage, ExportBundle, ImportReport,
    Messages, RecordLayout, SchedulingOptions, SchedulingResult, Teacher,
    TeacherCreate, TeacherUpdate, WorkspaceState
)
from service.conflicts import slots_collide
from service.course_parser import find_best_matching_teacher, parse_course_text, record_to_course
from service.defaults import UNKNOWN_TEACHER_ID
from service.scheduler import CourseScheduler

logger = logging.getLogger(__name__)

class EntityNotFoundError(LookupError):
    """A referenced teacher or course does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


def _new_id() -> str:
    return uuid.uuid4().hex


def _update_values(data, model) -> dict:
    """
    Fields explicitly set on an update request.

    An explicit null clears fields that are optional on the stored model and
    is ignored for the others.
    """
    changes = data.model_dump(exclude_unset=True)
    return {
        key: value for key, value in changes.items()
        if value is not None or model.model_fields[key].default is None
    }


# ===========================
# Teachers
# ===========================

def get_teacher(state: WorkspaceState, teacher_id: str) -> Teacher:
    teacher = next((t for t in state.teachers if t.id == teacher_id), None)
    if teacher is None:
        raise EntityNotFoundError("Teacher", teacher_id)
    return teacher


def add_teacher(state: WorkspaceState, data: TeacherCreate) -> Tuple[WorkspaceState, Teacher]:
    teacher = Teacher(id=_new_id(), **data.model_dump())
    return state.model_copy(update={"teachers": state.teachers + [teacher]}), teacher


def update_teacher(state: WorkspaceState, teacher_id: str, data: TeacherUpdate) -> Tuple[WorkspaceState, Teacher]:
    current = get_teacher(state, teacher_id)
    updated = current.model_copy(update=_update_values(data, Teacher))
    teachers = [updated if t.id == teacher_id else t for t in state.teachers]
    return state.model_copy(update={"teachers": teachers}), updated


def delete_teacher(state: WorkspaceState, teacher_id: str) -> WorkspaceState:
    """Remove a teacher together with their courses and those courses' schedule items."""
    get_teacher(state, teacher_id)
    removed = {c.id for c in state.courses if c.teacher_id == teacher_id}
    if removed:
        logger.info(f"Deleting teacher {teacher_id} removes {len(removed)} course(s)")
    return state.model_copy(update={
        "teachers": [t for t in state.teachers if t.id != teacher_id],
        "courses": [c for c in state.courses if c.id not in removed],
        "schedule": [s for s in state.schedule if s.course_id not in removed],
    })


# ===========================
# Courses
# ===========================

def get_course(state: WorkspaceState, course_id: str) -> Course:
    course = next((c for c in state.courses if c.id == course_id), None)
    if course is None:
        raise EntityNotFoundError("Course", course_id)
    return course


def add_course(state: WorkspaceState, data: CourseCreate) -> Tuple[WorkspaceState, Course]:
    get_teacher(state, data.teacher_id)
    values = data.model_dump()
    if values["credits"] is None:
        values["credits"] = settings.default_credits
    if not values["subject"]:
        values["subject"] = data.department or ""
    course = Course(id=_new_id(), **values)
    return state.model_copy(update={"courses": state.courses + [course]}), course


def update_course(state: WorkspaceState, course_id: str, data: CourseUpdate) -> Tuple[WorkspaceState, Course]:
    current = get_course(state, course_id)
    changes = _update_values(data, Course)
    if "teacher_id" in changes:
        get_teacher(state, changes["teacher_id"])
    # Re-validate so nested slots become models again
    updated = Course.model_validate({**current.model_dump(), **changes})
    courses = [updated if c.id == course_id else c for c in state.courses]
    return state.model_copy(update={"courses": courses}), updated


def delete_course(state: WorkspaceState, course_id: str) -> WorkspaceState:
    get_course(state, course_id)
    return state.model_copy(update={
        "courses": [c for c in state.courses if c.id != course_id],
        "schedule": [s for s in state.schedule if s.course_id != course_id],
    })


def find_duplicate_course(course: Course, existing: List[Course]) -> Optional[Course]:
    """Same name taught by the same teacher counts as the same course."""
    return next(
        (c for c in existing if c.name == course.name and c.teacher_id == course.teacher_id),
        None
    )


def import_courses(state: WorkspaceState, text: str,
                   layout: RecordLayout = RecordLayout.AUTO) -> Tuple[WorkspaceState, ImportReport]:
    """
    Parse roster text and add the courses to the workspace.

    Unknown teacher names create new teachers. A course already present
    (same name and teacher) is skipped; time overlaps with other courses are
    reported as warnings but do not block the import.
    """
    parsed = parse_course_text(text, layout)
    report = ImportReport(messages=Messages(error_message=list(parsed.messages.error_message)))
    teachers = list(state.teachers)
    courses = list(state.courses)

    for record in parsed.records:
        teacher = find_best_matching_teacher(record.teachers, teachers)
        if teacher is None and record.teachers:
            teacher = Teacher(
                id=_new_id(),
                name=record.teachers[0],
                subjects=[record.department] if record.department else []
            )
            teachers.append(teacher)
            report.created_teachers.append(teacher)

        if teacher is None:
            report.warnings.append(f"Course {record.name}: no teacher given")
        teacher_id = teacher.id if teacher else UNKNOWN_TEACHER_ID

        course = record_to_course(record, _new_id(), teacher_id, settings.default_credits)

        if find_duplicate_course(course, courses):
            logger.warning(f"Skipping duplicate course {course.name}")
            report.messages.error_message.append(ErrorMessage(
                title="Duplicate course",
                message=f"Same course name and teacher: {course.name}"
            ))
            continue

        for other in courses:
            if slots_collide(course.fixed_time_slots, other.fixed_time_slots):
                report.warnings.append(f"Course \"{course.name}\" overlaps with existing course \"{other.name}\"")

        courses.append(course)
        report.imported.append(course)
        if record.needs_review or teacher is None:
            report.needs_review.append(course.name)

    logger.info(f"Imported {len(report.imported)} course(s), created {len(report.created_teachers)} teacher(s)")
    return state.model_copy(update={"teachers": teachers, "courses": courses}), report


# ===========================
# Schedule / Export
# ===========================

def generate_schedule(state: WorkspaceState,
                      options: Optional[SchedulingOptions] = None) -> Tuple[WorkspaceState, SchedulingResult]:
    """Run the scheduler; the stored schedule is replaced only on success."""
    scheduler = CourseScheduler(state.courses, state.teachers, state.time_slots)
    result = scheduler.generate_schedule(options)
    if not result.success:
        return state, result
    return state.model_copy(update={"schedule": result.schedule}), result


def export_bundle(state: WorkspaceState) -> ExportBundle:
    return ExportBundle(
        schedule=state.schedule,
        time_slots=state.time_slots,
        courses=state.courses,
        teachers=state.teachers,
        export_time=datetime.now(timezone.utc).isoformat()
    )
