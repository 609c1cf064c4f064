from typing import List
from fastapi import APIRouter, Depends, status
from models.schemas import (
    WorkspaceState, Teacher, TeacherCreate, TeacherUpdate, Course, CourseCreate, CourseUpdate,
    CourseTextRequest, ImportReport, SchedulingOptions, SchedulingResult,
    CourseValidationReport, ExportBundle
)
from service import workspace
from service.defaults import default_state
from service.store import ScheduleStore, get_store
from service.validation import validate_course_data

# Create a router instance
router = APIRouter(prefix="/workspace")


@router.get("", response_model=WorkspaceState)
async def get_workspace(store: ScheduleStore = Depends(get_store)):
    """Return all stored collections."""
    return store.load()


# ===========================
# Teachers
# ===========================

@router.get("/teachers", response_model=List[Teacher])
async def list_teachers(store: ScheduleStore = Depends(get_store)):
    return store.load().teachers


@router.post("/teachers", response_model=Teacher, status_code=status.HTTP_201_CREATED)
async def create_teacher(data: TeacherCreate, store: ScheduleStore = Depends(get_store)):
    state, teacher = workspace.add_teacher(store.load(), data)
    store.save(state)
    return teacher


@router.put("/teachers/{teacher_id}", response_model=Teacher)
async def update_teacher(teacher_id: str, data: TeacherUpdate, store: ScheduleStore = Depends(get_store)):
    state, teacher = workspace.update_teacher(store.load(), teacher_id, data)
    store.save(state)
    return teacher


@router.delete("/teachers/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_teacher(teacher_id: str, store: ScheduleStore = Depends(get_store)):
    """Delete a teacher; their courses and schedule items go with them."""
    store.save(workspace.delete_teacher(store.load(), teacher_id))


# ===========================
# Courses
# ===========================

@router.get("/courses", response_model=List[Course])
async def list_courses(store: ScheduleStore = Depends(get_store)):
    return store.load().courses


@router.post("/courses", response_model=Course, status_code=status.HTTP_201_CREATED)
async def create_course(data: CourseCreate, store: ScheduleStore = Depends(get_store)):
    state, course = workspace.add_course(store.load(), data)
    store.save(state)
    return course


@router.put("/courses/{course_id}", response_model=Course)
async def update_course(course_id: str, data: CourseUpdate, store: ScheduleStore = Depends(get_store)):
    state, course = workspace.update_course(store.load(), course_id, data)
    store.save(state)
    return course


@router.delete("/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: str, store: ScheduleStore = Depends(get_store)):
    store.save(workspace.delete_course(store.load(), course_id))


@router.post("/courses/import", response_model=ImportReport)
async def import_courses(request: CourseTextRequest, store: ScheduleStore = Depends(get_store)):
    """
    Import a pasted roster.

    Unknown teachers are created, duplicate courses are skipped, and
    records whose layout or time text looked doubtful are listed under
    needs_review.
    """
    state, report = workspace.import_courses(store.load(), request.text, request.layout)
    store.save(state)
    return report


# ===========================
# Schedule / Validation / Export
# ===========================

@router.post("/schedule/generate", response_model=SchedulingResult)
async def generate_schedule(options: SchedulingOptions = SchedulingOptions(),
                            store: ScheduleStore = Depends(get_store)):
    """
    Generate the timetable from the stored courses.

    A successful result, conflicts included, replaces the stored schedule.
    """
    state, result = workspace.generate_schedule(store.load(), options)
    if result.success:
        store.save(state)
    return result


@router.get("/validation", response_model=CourseValidationReport)
async def validate_courses(store: ScheduleStore = Depends(get_store)):
    return validate_course_data(store.load().courses)


@router.get("/export", response_model=ExportBundle)
async def export_workspace(store: ScheduleStore = Depends(get_store)):
    """Bundle schedule, periods, courses and teachers with an export timestamp."""
    return workspace.export_bundle(store.load())


@router.post("/reset", response_model=WorkspaceState)
async def reset_workspace(store: ScheduleStore = Depends(get_store)):
    """Drop all data and restore the default period table."""
    state = default_state()
    store.save(state)
    return state
