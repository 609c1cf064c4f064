"""
Tests for workspace operations, course validation, migration and the stores.
"""
import json
import pytest
from pydantic import ValidationError
from models.schemas import (
    Course, CourseCreate, CourseUpdate, FixedTimeSlot, SchedulingOptions, TeacherCreate,
    TeacherUpdate, WeekRange
)
from service import workspace
from service.defaults import UNKNOWN_TEACHER_ID, default_state
from service.store import InMemoryStore, JsonFileStore
from service.validation import migrate_course_data, migrate_state, validate_course_data
from service.workspace import EntityNotFoundError


ROSTER = (
    "新时代中国特色社会主义理论与实践10班\t2\t考试\t马克思主义学院\t封莎\t清水河\t1-5周，星期一第3-4节 (立人楼B417)\n"
    "7-10周，星期一第3-4节 (立人楼B417)\n"
    "学术规范与论文写作1班\t1\t考查\t计算机学院\t叶茂\t清水河\t11-14周，星期一第3-4节 星期三第3-4节 (立人楼B417)"
)


def state_with_teacher():
    state, teacher = workspace.add_teacher(default_state(), TeacherCreate(name="陈文宇", subjects=["有限自动机理论"]))
    return state, teacher


def monday_slot(*week_pairs):
    return FixedTimeSlot(
        day_of_week=1,
        time_slot_ids=["5", "6"],
        weeks=[WeekRange(start=s, end=e) for s, e in week_pairs] or None
    )


def test_add_and_update_teacher():
    state, teacher = state_with_teacher()

    state, updated = workspace.update_teacher(state, teacher.id, TeacherUpdate(email="chen@example.com"))

    assert updated.name == "陈文宇"
    assert updated.email == "chen@example.com"
    assert state.teachers == [updated]


def test_add_course_defaults():
    state, teacher = state_with_teacher()

    state, course = workspace.add_course(state, CourseCreate(
        name="有限自动机理论",
        teacher_id=teacher.id,
        department="计算机学院",
        fixed_time_slots=[monday_slot((1, 16))]
    ))

    assert course.credits == 2
    assert course.subject == "计算机学院"
    assert state.courses == [course]


def test_add_course_requires_known_teacher():
    with pytest.raises(EntityNotFoundError):
        workspace.add_course(default_state(), CourseCreate(name="x", teacher_id="missing"))


def test_update_course_replaces_slots():
    state, teacher = state_with_teacher()
    state, course = workspace.add_course(state, CourseCreate(name="A", teacher_id=teacher.id))

    state, updated = workspace.update_course(state, course.id, CourseUpdate(
        fixed_time_slots=[monday_slot((1, 8))]
    ))

    assert updated.name == "A"
    assert updated.fixed_time_slots[0].weeks == [WeekRange(start=1, end=8)]


def test_delete_teacher_cascades():
    state, teacher = state_with_teacher()
    state, course = workspace.add_course(state, CourseCreate(
        name="A", teacher_id=teacher.id, fixed_time_slots=[monday_slot()]
    ))
    state, result = workspace.generate_schedule(state)
    assert len(state.schedule) == 2

    state = workspace.delete_teacher(state, teacher.id)

    assert state.teachers == []
    assert state.courses == []
    assert state.schedule == []


def test_delete_course_removes_schedule_items():
    state, teacher = state_with_teacher()
    state, a = workspace.add_course(state, CourseCreate(name="A", teacher_id=teacher.id, fixed_time_slots=[monday_slot()]))
    state, b = workspace.add_course(state, CourseCreate(
        name="B", teacher_id=teacher.id,
        fixed_time_slots=[FixedTimeSlot(day_of_week=2, time_slot_ids=["1"])]
    ))
    state, _ = workspace.generate_schedule(state)

    state = workspace.delete_course(state, a.id)

    assert [c.id for c in state.courses] == [b.id]
    assert {s.course_id for s in state.schedule} == {b.id}


def test_delete_unknown_course():
    with pytest.raises(EntityNotFoundError):
        workspace.delete_course(default_state(), "nope")


def test_operations_do_not_mutate_input_state():
    state = default_state()

    new_state, _ = workspace.add_teacher(state, TeacherCreate(name="孙明"))

    assert state.teachers == []
    assert len(new_state.teachers) == 1


def test_import_creates_teachers_and_courses():
    state, report = workspace.import_courses(default_state(), ROSTER)

    assert [c.name for c in report.imported] == ["新时代中国特色社会主义理论与实践10班", "学术规范与论文写作1班"]
    assert [t.name for t in report.created_teachers] == ["封莎", "叶茂"]
    assert report.needs_review == []
    assert len(state.courses) == 2
    assert state.courses[0].teacher_id == state.teachers[0].id


def test_reimport_skips_duplicates():
    state, _ = workspace.import_courses(default_state(), ROSTER)

    state, report = workspace.import_courses(state, ROSTER)

    assert report.imported == []
    assert report.created_teachers == []
    assert [m.title for m in report.messages.error_message] == ["Duplicate course", "Duplicate course"]
    assert len(state.courses) == 2


def test_import_warns_about_overlaps():
    state, _ = workspace.import_courses(default_state(), ROSTER)

    state, report = workspace.import_courses(
        state, "形势与政策\t3\t考查\t马克思主义学院\t王五\t清水河\t9-10周，星期一第4节 (立人楼B101)"
    )

    assert len(report.imported) == 1
    assert report.warnings == ["Course \"形势与政策\" overlaps with existing course \"新时代中国特色社会主义理论与实践10班\""]


def test_generate_schedule_keeps_conflicting_result():
    state, teacher = state_with_teacher()
    state, _ = workspace.add_course(state, CourseCreate(name="A", teacher_id=teacher.id, fixed_time_slots=[monday_slot((1, 8))]))
    state, _ = workspace.add_course(state, CourseCreate(name="B", teacher_id=teacher.id, fixed_time_slots=[monday_slot((6, 10))]))

    state, result = workspace.generate_schedule(state, SchedulingOptions())

    assert result.success is True
    assert len(result.conflicts) == 2
    assert len(state.schedule) == 4


def test_export_bundle():
    state, _ = workspace.import_courses(default_state(), ROSTER)

    bundle = workspace.export_bundle(state)
    data = bundle.model_dump(by_alias=True)

    assert set(data) == {"schedule", "timeSlots", "courses", "teachers", "exportTime"}
    assert len(data["timeSlots"]) == 12
    assert data["exportTime"].endswith("+00:00")


def test_validate_course_data():
    courses = [
        Course(id="1", name="A", teacher_id="t1", credits=0),
        Course(id="2", name="B", teacher_id="t1",
               fixed_time_slots=[FixedTimeSlot(day_of_week=1, time_slot_ids=[])]),
    ]

    report = validate_course_data(courses)

    assert report.is_valid is False
    assert report.errors == ["Course B, slot 1: time_slot_ids is empty"]
    assert "Course A: no time slots set" in report.warnings
    assert "Course A: invalid credits (0)" in report.warnings


def test_migrate_legacy_course():
    migrated = migrate_course_data([
        {"id": "1", "name": "旧课程", "teacherId": "t1", "duration": 2, "frequency": 6}
    ])

    course = Course.model_validate(migrated[0])
    assert course.subject == "未知学科"
    assert course.credits == 2
    assert course.weeks == "1-16周"
    assert [(s.day_of_week, s.time_slot_ids) for s in course.fixed_time_slots] == [
        (1, ["1", "2"]), (2, ["1", "2"]), (3, ["1", "2"]), (4, ["1", "2"]), (5, ["1", "2"]), (1, ["3", "4"]),
    ]


def test_migrate_browser_export_keys():
    raw = {
        "courses": [{
            "id": "c1", "name": "机器学习", "teacherId": "4", "credits": 3,
            "fixedTimeSlots": [{"dayOfWeek": 2, "timeSlotIds": ["1", "2"], "weeks": [{"start": 1, "end": 8}]}]
        }],
        "timeSlots": [{"id": "1", "name": "第1节", "startTime": "08:30", "endTime": "09:15", "order": 1}],
    }

    state = migrate_state(raw)

    assert state["courses"][0]["teacher_id"] == "4"
    assert state["courses"][0]["fixed_time_slots"][0]["time_slot_ids"] == ["1", "2"]
    assert state["timeSlots"][0]["start_time"] == "08:30"


def test_in_memory_store_isolates_state():
    store = InMemoryStore()
    state = store.load()
    state.teachers.append(workspace.add_teacher(state, TeacherCreate(name="孙明"))[1])

    assert store.load().teachers == []


def test_json_store_missing_file_gives_defaults(tmp_path):
    store = JsonFileStore(str(tmp_path / "state.json"))

    state = store.load()

    assert len(state.time_slots) == 12
    assert state.courses == []


def test_json_store_roundtrip(tmp_path):
    path = tmp_path / "data" / "state.json"
    store = JsonFileStore(str(path))
    state, _ = workspace.import_courses(default_state(), ROSTER)

    store.save(state)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert set(raw) == {"timeSlots", "teachers", "courses", "schedule"}
    assert store.load() == state


def test_json_store_loads_browser_document(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({
        "teachers": [{"id": "1", "name": "陈文宇", "subjects": [], "unavailableSlots": []}],
        "courses": [{"id": "c1", "name": "有限自动机理论", "teacherId": "1", "duration": 2, "frequency": 1}],
        "schedule": [],
    }, ensure_ascii=False), encoding="utf-8")

    state = JsonFileStore(str(path)).load()

    assert state.teachers[0].name == "陈文宇"
    assert state.courses[0].fixed_time_slots[0].time_slot_ids == ["1", "2"]
    assert len(state.time_slots) == 12


def test_update_course_rejects_blank_teacher():
    state, teacher = state_with_teacher()
    state, course = workspace.add_course(state, CourseCreate(name="A", teacher_id=teacher.id))

    with pytest.raises(EntityNotFoundError):
        workspace.update_course(state, course.id, CourseUpdate(teacher_id=""))


def test_update_clears_optional_fields():
    state, teacher = state_with_teacher()
    state, teacher = workspace.update_teacher(state, teacher.id, TeacherUpdate(email="chen@example.com"))
    state, course = workspace.add_course(state, CourseCreate(name="A", teacher_id=teacher.id, campus="清水河"))

    state, teacher = workspace.update_teacher(state, teacher.id, TeacherUpdate(email=None))
    state, course = workspace.update_course(state, course.id, CourseUpdate(campus=None, name=None))

    assert teacher.email is None
    assert teacher.name == "陈文宇"
    assert course.campus is None
    assert course.name == "A"


def test_course_input_requires_periods():
    with pytest.raises(ValidationError):
        CourseCreate(name="A", teacher_id="t1", fixed_time_slots=[{"day_of_week": 1, "time_slot_ids": []}])
    with pytest.raises(ValidationError):
        CourseUpdate(fixed_time_slots=[{"day_of_week": 1, "time_slot_ids": []}])


def test_teacher_update_rejects_blank_name():
    with pytest.raises(ValidationError):
        TeacherUpdate(name="")


def test_migrate_course_without_teacher():
    migrated = migrate_course_data([
        {"id": "c1", "name": "旧课", "duration": 2, "frequency": 2},
        {"id": "c2", "name": "新课", "fixedTimeSlots": [{"dayOfWeek": 3, "timeSlotIds": ["1"]}]},
        {"name": "无编号"},
    ])

    assert [c["id"] for c in migrated] == ["c1", "c2"]
    assert all(c["teacher_id"] == UNKNOWN_TEACHER_ID for c in migrated)


def test_json_store_loads_course_without_teacher(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({
        "courses": [{"id": "c1", "name": "旧课", "duration": 2, "frequency": 2}]
    }, ensure_ascii=False), encoding="utf-8")

    state = JsonFileStore(str(path)).load()

    assert state.courses[0].teacher_id == UNKNOWN_TEACHER_ID
    assert [s.day_of_week for s in state.courses[0].fixed_time_slots] == [1, 2]
