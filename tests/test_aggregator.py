import pytest

from eduaid.aggregator import (
    aggregate_subject_scores,
    count_students_and_subjects,
    overall_mean,
    record_grade_averages,
    subject_means,
    term_scores,
)


def test_term_averages_per_student_and_subject():
    rows = [
        {"id": "S1", "subject": "Mathematics", "SS1_1st": 80, "SS1_2nd": 90},
        {"id": "S1", "subject": "Physics", "SS1_1st": 75, "SS1_2nd": 65},
    ]
    assert aggregate_subject_scores(rows) == {"S1": {"Mathematics": 85.0, "Physics": 70.0}}


def test_aggregation_is_idempotent(term_rows):
    assert aggregate_subject_scores(term_rows) == aggregate_subject_scores(term_rows)


def test_invalid_and_negative_scores_are_ignored():
    row = {"name": "Ada", "subject": "Biology", "SS1_1st": "abs", "SS1_2nd": -1, "ss2 1st": "64", "SS3_Score": 70}
    assert term_scores(row) == [64.0, 70.0]
    assert aggregate_subject_scores([row]) == {"Ada": {"Biology": 67.0}}


def test_rows_without_subject_or_scores_are_skipped():
    rows = [
        {"name": "Ada", "SS1_1st": 80},
        {"name": "Ada", "subject": "Chemistry"},
        {"subject": "Chemistry", "SS1_1st": 80},
    ]
    assert aggregate_subject_scores(rows) == {}


def test_duplicate_subject_last_row_wins():
    rows = [
        {"name": "Ada", "subject": "Mathematics", "SS1_1st": 50},
        {"name": "Ada", "subject": "Mathematics", "SS1_1st": 90},
    ]
    assert aggregate_subject_scores(rows, policy="last") == {"Ada": {"Mathematics": 90.0}}


def test_duplicate_subject_average_policy_pools_scores():
    rows = [
        {"name": "Ada", "subject": "Mathematics", "SS1_1st": 50},
        {"name": "Ada", "subject": "Mathematics", "SS1_1st": 90, "SS1_2nd": 70},
    ]
    assert aggregate_subject_scores(rows, policy="average") == {"Ada": {"Mathematics": 70.0}}


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        aggregate_subject_scores([], policy="first")


def test_counts_distinct_students_and_subjects(term_rows):
    assert count_students_and_subjects(term_rows) == (2, 5)


def test_class_column_does_not_replace_subject():
    rows = [
        {"Full Name": "Ada", "Subject": "Mathematics", "Class": "SS3A", "SS1_1st": 80},
        {"Full Name": "Ada", "Subject": "Physics", "Class": "SS3A", "SS1_1st": 70},
    ]
    assert aggregate_subject_scores(rows) == {"Ada": {"Mathematics": 80.0, "Physics": 70.0}}
    assert count_students_and_subjects(rows) == (1, 2)


def test_class_column_alone_does_not_name_a_subject():
    rows = [{"Full Name": "Ada", "Class": "SS3A", "SS1_1st": 80}]
    assert aggregate_subject_scores(rows) == {}
    assert count_students_and_subjects(rows) == (1, 0)


def test_grade_averages_from_records():
    records = [
        {"identifier": "Ada", "subject": None, "grade": 80.0},
        {"identifier": "Ada", "subject": None, "grade": 90.0},
        {"identifier": "Bola", "subject": "Biology", "grade": 55.0},
        {"identifier": "Chidi", "subject": None, "grade": None},
    ]
    assert record_grade_averages(records) == {"Ada": {"Overall": 85.0}, "Bola": {"Biology": 55.0}}
    assert record_grade_averages([]) == {}


def test_class_means_skip_unparseable_scores():
    averages = {"Ada": {"Mathematics": 80, "Physics": "n/a"}, "Bola": {"Mathematics": 71, "Physics": 60}}
    assert subject_means(averages) == {"Mathematics": 75.5, "Physics": 60.0}
    assert subject_means(averages, decimals=0) == {"Mathematics": 76.0, "Physics": 60.0}
    assert overall_mean(averages) == pytest.approx(211 / 3)
    assert overall_mean({}) is None
    assert subject_means({}) == {}
