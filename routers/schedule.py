from fastapi import APIRouter
from models.schemas import ScheduleRequest, SchedulingResult
from service.defaults import default_time_slots
from service.scheduler import CourseScheduler

# Create a router instance
router = APIRouter()


@router.post("/schedule/generate", response_model=SchedulingResult)
async def generate_schedule(request: ScheduleRequest):
    """
    Generate a timetable from the courses in the request.
    
    Nothing is stored. Set options.selected_week to see a single week, or
    options.week_range to keep only slots that run within that range.
    """
    time_slots = request.time_slots if request.time_slots is not None else default_time_slots()
    scheduler = CourseScheduler(request.courses, request.teachers, time_slots)
    return scheduler.generate_schedule(request.options)
