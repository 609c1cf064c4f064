"""
Course scheduler.

Expands every course's fixed time slots into one schedule item per
(weekday, period), optionally restricted to a single week or a week range,
and runs conflict detection over the result.
"""

from typing import List, Optional, Sequence
from models.schemas import (
    Course, Teacher, TimeSlot, ScheduleItem, SchedulingOptions, SchedulingResult,
    FixedTimeSlot, WeekRange
)
from service.conflicts import detect_time_conflicts
from service.time_parser import is_week_in_ranges, overlaps_target
import logging

logger = logging.getLogger(__name__)


class CourseScheduler:
    """
    Timetable generator for courses with fixed weekly time slots.

    Generation is deterministic: the same courses and options always yield
    the same schedule items in the same order.
    """

    def __init__(self, courses: Sequence[Course], teachers: Sequence[Teacher], time_slots: Sequence[TimeSlot]):
        """
        Initialize the scheduler.

        Args:
            courses: Courses to place on the timetable
            teachers: Known teachers (non-owning references from courses)
            time_slots: Period table, used to name periods in conflict messages
        """
        self.courses = list(courses)
        self.teachers = list(teachers)
        self.time_slots = sorted(time_slots, key=lambda ts: ts.order)
        self.schedule: List[ScheduleItem] = []

    def generate_schedule(self, options: Optional[SchedulingOptions] = None) -> SchedulingResult:
        """
        Main entry point to build the timetable.

        Args:
            options: Optional week or week-range restriction

        Returns:
            SchedulingResult with the schedule and any conflicts, or a failed
            result carrying the error message
        """
        options = options or SchedulingOptions()
        self.schedule = []

        try:
            # Step 1: Expand each course's fixed slots
            for course in self.courses:
                self._schedule_for_course(course, options)

            # Step 2: Check for overlapping items
            conflicts = detect_time_conflicts(self.schedule, options.selected_week, self.time_slots)

            week_info = self._describe_weeks(options)
            if conflicts:
                message = f"{week_info}课表生成完成，但存在 {len(conflicts)} 个时间冲突"
            else:
                message = f"{week_info}课表生成成功！"

            logger.info(f"Generated {len(self.schedule)} schedule items for {len(self.courses)} courses ({week_info})")
            return SchedulingResult(
                schedule=self.schedule,
                conflicts=conflicts,
                success=True,
                message=message
            )

        except Exception as e:
            logger.error(f"Scheduling error: {str(e)}", exc_info=True)
            return self._create_error_result(str(e))

    def _schedule_for_course(self, course: Course, options: SchedulingOptions):
        """Emit one schedule item per period of every slot active in the requested weeks."""
        if not course.fixed_time_slots:
            logger.warning(f"Course {course.name} has no fixed time slots")
            return

        for fixed_slot in course.fixed_time_slots:
            if not fixed_slot.time_slot_ids:
                logger.warning(f"Course {course.name} has a time slot without periods")
                continue

            if not self._is_slot_selected(fixed_slot, options):
                continue

            suffix = self._week_suffix(fixed_slot.weeks, options)
            for time_slot_id in fixed_slot.time_slot_ids:
                self.schedule.append(ScheduleItem(
                    id=f"{course.id}-{fixed_slot.day_of_week}-{time_slot_id}-{suffix}",
                    course_id=course.id,
                    teacher_id=course.teacher_id,
                    time_slot_id=time_slot_id,
                    day_of_week=fixed_slot.day_of_week,
                    weeks=fixed_slot.weeks,
                    location=fixed_slot.location or course.location
                ))

    # ===========================
    # Helper Methods
    # ===========================

    def _is_slot_selected(self, fixed_slot: FixedTimeSlot, options: SchedulingOptions) -> bool:
        """Check the slot against the selected week, or else the selected week range."""
        if options.selected_week is not None:
            return is_week_in_ranges(options.selected_week, fixed_slot.weeks)
        if options.week_range is not None:
            return overlaps_target(fixed_slot.weeks, options.week_range)
        return True

    def _week_suffix(self, weeks: Optional[List[WeekRange]], options: SchedulingOptions) -> str:
        """Week part of a schedule item id; only used to keep list keys apart."""
        if options.selected_week is not None:
            return f"w{options.selected_week}"
        if weeks:
            return f"w{weeks[0].start}-{weeks[0].end}"
        return "all"

    def _describe_weeks(self, options: SchedulingOptions) -> str:
        if options.selected_week is not None:
            return f"第{options.selected_week}周"
        if options.week_range is not None:
            return f"第{options.week_range.start}-{options.week_range.end}周"
        return "全学期"

    def _create_error_result(self, error: str) -> SchedulingResult:
        """Create result for a failed generation; no partial schedule is kept."""
        self.schedule = []
        return SchedulingResult(
            schedule=[],
            conflicts=[],
            success=False,
            message=f"生成失败: {error}"
        )
