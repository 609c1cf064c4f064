"""
Default period table and initial workspace state.
"""
from typing import List
from models.schemas import TimeSlot, WorkspaceState


# Teacher id for courses whose roster or legacy record names no teacher
UNKNOWN_TEACHER_ID = "unknown"

# (start, end) of each teaching period, 24h
PERIOD_TIMES = [
    ("08:30", "09:15"),
    ("09:20", "10:05"),
    ("10:20", "11:05"),
    ("11:10", "11:55"),
    ("14:30", "15:15"),
    ("15:20", "16:05"),
    ("16:20", "17:05"),
    ("17:10", "17:55"),
    ("19:30", "20:15"),
    ("20:20", "21:05"),
    ("21:10", "21:55"),
    ("22:00", "22:45"),
]


def default_time_slots() -> List[TimeSlot]:
    return [
        TimeSlot(id=str(order), name=f"第{order}节", start_time=start, end_time=end, order=order)
        for order, (start, end) in enumerate(PERIOD_TIMES, start=1)
    ]


def default_state() -> WorkspaceState:
    return WorkspaceState(time_slots=default_time_slots())
