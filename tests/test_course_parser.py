"""
Tests for roster parsing: layouts, continuation lines, fallbacks, teacher matching.
"""
import pytest
from models.schemas import RecordLayout, Teacher, WeekRange
from service.course_parser import (
    CourseParseError, detect_layout, find_best_matching_teacher, parse_course_record,
    parse_course_text, record_to_course
)


EXAMPLE_TEXT = (
    "新时代中国特色社会主义理论与实践10班\t2\t考试\t马克思主义学院\t封莎\t清水河\t1-5周，星期一第3-4节 (立人楼B417)\n"
    "7-10周，星期一第3-4节 (立人楼B417)\n"
    "1-4周，星期四第3-4节 (立人楼B417)\n"
    "6-10周，星期四第3-4节 (立人楼B417)\n"
    "学术规范与论文写作1班\t1\t考查\t计算机科学与工程学院（网络空间安全学院）\t叶茂\t清水河\t"
    "11-14周，星期一第3-4节 星期三第3-4节 (立人楼B417)"
)

TEACHER_FIRST_LINE = "机器学习\t钟秀琴,曾伟\t计算机学院\t清水河\t48\t3\t1-16周，星期二第1-2节 (品学楼A101)"


def weeks(*pairs):
    return [WeekRange(start=s, end=e) for s, e in pairs]


def test_parse_example_roster():
    """Two records pasted back to back, the first with continuation lines."""
    result = parse_course_text(EXAMPLE_TEXT)

    assert result.messages.error_message == []
    assert [r.name for r in result.records] == ["新时代中国特色社会主义理论与实践10班", "学术规范与论文写作1班"]

    first = result.records[0]
    assert first.layout == RecordLayout.CREDITS_FIRST
    assert first.credits == 2
    assert first.exam_type == "考试"
    assert first.teachers == ["封莎"]
    assert first.department == "马克思主义学院"
    assert first.campus == "清水河"
    assert [(s.day_of_week, s.time_slot_ids, s.weeks) for s in first.time_slots] == [
        (1, ["3", "4"], weeks((1, 5), (7, 10))),
        (4, ["3", "4"], weeks((1, 4), (6, 10))),
    ]
    assert first.needs_review is False

    second = result.records[1]
    assert second.credits == 1
    assert second.department == "计算机科学与工程学院（网络空间安全学院）"
    assert [s.day_of_week for s in second.time_slots] == [1, 3]
    assert all(s.weeks == weeks((11, 14)) for s in second.time_slots)


def test_parse_teacher_first_record():
    record = parse_course_record(TEACHER_FIRST_LINE)

    assert record.layout == RecordLayout.TEACHER_FIRST
    assert record.teachers == ["钟秀琴", "曾伟"]
    assert record.hours == 48
    assert record.credits == 3
    assert record.time_slots[0].location == "品学楼A101"
    assert record.needs_review is False


def test_blank_line_separated_blocks():
    text = TEACHER_FIRST_LINE + "\n\n" + "分布式系统\t薛瑞尼\t计算机学院\t清水河\t32\t2\t1-8周，星期四第5-6节"

    result = parse_course_text(text)

    assert [r.name for r in result.records] == ["机器学习", "分布式系统"]


def test_detect_layout_explicit_tag_wins():
    fields = ["高等数学", "3", "考试", "数学学院", "张三", "清水河"]

    assert detect_layout(fields) == (RecordLayout.CREDITS_FIRST, [])
    assert detect_layout(fields, RecordLayout.TEACHER_FIRST) == (RecordLayout.TEACHER_FIRST, [])


def test_detect_layout_flags_ambiguous_columns():
    layout, reasons = detect_layout(["课程", "2", "考试", "学院", "张三", "3"])

    assert layout == RecordLayout.CREDITS_FIRST
    assert any("both numeric" in r for r in reasons)


def test_short_record_with_continuation_needs_review():
    record = parse_course_record("数据库\t王五\t计算机学院\t清水河\n1-8周，星期五第1-2节 (主楼101)")

    assert record.layout == RecordLayout.TEACHER_FIRST
    assert record.credits is None
    assert len(record.time_slots) == 1
    assert record.needs_review is True
    assert "credits not found" in record.review_reasons


def test_non_time_continuation_line_is_reported():
    record = parse_course_record(TEACHER_FIRST_LINE + "\n备注：双语教学")

    assert any(d.reason == "not a time description" for d in record.diagnostics)
    assert len(record.time_slots) == 1


def test_duplicate_periods_flag_review():
    record = parse_course_record(
        "编译原理\t李四\t计算机学院\t清水河\t48\t3\t1-8周，星期一第1-2节 (A101)\n1-8周，星期一第2-3节 (A102)"
    )

    assert record.duplicate_periods == ["周一第2节"]
    assert record.needs_review is True


def test_empty_record_raises():
    with pytest.raises(CourseParseError) as exc_info:
        parse_course_record("  \n ")
    assert exc_info.value.label == "EMPTY_RECORD"


def test_too_few_fields_raises():
    with pytest.raises(CourseParseError) as exc_info:
        parse_course_record("高等数学\t张三\t数学学院")
    assert exc_info.value.label == "TOO_FEW_FIELDS"


def test_multiple_records_in_block_raises():
    with pytest.raises(CourseParseError) as exc_info:
        parse_course_record(EXAMPLE_TEXT)
    assert exc_info.value.label == "MULTIPLE_RECORDS"


def test_malformed_record_is_dropped_with_message():
    text = "坏记录\t只有两列\n\n" + TEACHER_FIRST_LINE

    result = parse_course_text(text)

    assert [r.name for r in result.records] == ["机器学习"]
    assert len(result.messages.error_message) == 1
    assert result.messages.error_message[0].title == "Course record dropped"


def test_block_without_tabs_is_dropped():
    result = parse_course_text("随便写点什么")

    assert result.records == []
    assert len(result.messages.error_message) == 1


def test_empty_text():
    result = parse_course_text("   ")
    assert result.records == []
    assert result.messages.error_message == []


def test_find_best_matching_teacher():
    teachers = [
        Teacher(id="1", name="陈文宇"),
        Teacher(id="2", name="李玉军"),
    ]

    assert find_best_matching_teacher(["陈文宇"], teachers).id == "1"
    assert find_best_matching_teacher(["陈文宇教授"], teachers).id == "1"
    assert find_best_matching_teacher(["王玉军"], teachers).id == "2"
    assert find_best_matching_teacher(["赵六"], teachers) is None
    assert find_best_matching_teacher([], teachers) is None


def test_record_to_course():
    record = parse_course_text(EXAMPLE_TEXT).records[0]

    course = record_to_course(record, course_id="c1", teacher_id="t1")

    assert course.id == "c1"
    assert course.subject == "马克思主义学院"
    assert course.credits == 2
    assert course.location == "立人楼B417"
    assert course.weeks == "1-10周"
    assert len(course.fixed_time_slots) == 2


def test_record_to_course_default_credits():
    record = parse_course_record("数据库\t王五\t计算机学院\t清水河\n星期五第1-2节")

    course = record_to_course(record, course_id="c2", teacher_id="t1", default_credits=4)

    assert course.credits == 4
    assert course.weeks == "全学期"
