import pytest

from eduaid.recommendations import (
    analyze_student,
    class_grade,
    recommend_courses,
    select_strengths,
    synthesize_analysis,
)


def test_strengths_and_course_for_science_student():
    result = analyze_student("Ada", {"Mathematics": 78, "Physics": 72, "English": 60})
    assert result["strengths"] == ["Mathematics", "Physics"]
    courses = [rec["course"] for rec in result["courseRecommendations"]]
    assert len(courses) == 3
    assert courses[0] == "Computer Engineering"
    assert result["concerns"] == []
    assert result["averageScore"] == 70.0


def test_recommendation_fields_are_complete():
    result = analyze_student("Ada", {"Mathematics": 78, "Physics": 72})
    for rec in result["courseRecommendations"]:
        assert set(rec) == {"course", "university", "reason", "jamb_cutoff", "waec_required"}


def test_strengths_capped_and_ties_keep_order():
    scores = {"English": 80, "Literature": 90, "Government": 80, "CRK": 80}
    assert select_strengths(scores) == ["Literature", "English", "Government"]


def test_weak_student_still_gets_three_courses():
    courses = recommend_courses([], {"Mathematics": 40, "English": 45}, 42.5)
    assert [rec["course"] for rec in courses] == ["Public Administration", "Education", "Accounting"]


def test_accounting_filler_needs_good_average():
    courses = recommend_courses(["Economics"], {"Economics": 85, "English": 70}, 77.5)
    names = [rec["course"] for rec in courses]
    assert names == ["Economics", "Business Administration", "Accounting"]


def test_arts_student_gets_law():
    result = analyze_student("Tunde", {"Government": 82, "Literature": 65, "English": 71})
    names = [rec["course"] for rec in result["courseRecommendations"]]
    assert names[0] == "Law"
    assert len(names) == 3


@pytest.mark.parametrize("average,grade", [
    (85, "A"), (80, "A"), (79.9, "B"), (70, "B"), (65, "C"), (50, "D"), (49.9, "F"), (None, "N/A"),
])
def test_class_grade_ladder(average, grade):
    assert class_grade(average) == grade


def test_synthesized_analysis_covers_every_student():
    averages = {
        "Ada": {"Mathematics": 78, "Physics": 72, "English": 60},
        "Tunde": {"Economics": 75, "Government": 80, "English": 68},
    }
    analysis = synthesize_analysis(averages)
    assert analysis["aiPowered"] is False
    assert analysis["confidence"] == 0.8
    assert [s["studentName"] for s in analysis["individualInsights"]] == ["Ada", "Tunde"]
    assert all(len(s["courseRecommendations"]) == 3 for s in analysis["individualInsights"])
    assert analysis["overallAssessment"]["classGrade"] == "B"
    assert analysis["overallAssessment"]["totalStudents"] == 2
    assert set(analysis["recommendations"]) == {"immediate", "shortTerm", "longTerm"}


def test_statistics_drive_extra_actions():
    statistics = {"grade": {"mean": 55, "standardDeviation": 25}, "attendance": {"mean": 70}}
    analysis = synthesize_analysis({}, statistics)
    immediate = analysis["recommendations"]["immediate"]
    assert "Review curriculum difficulty and teaching methods" in immediate
    assert "Address performance disparities between students" in immediate
    assert analysis["overallAssessment"]["averageScore"] == 55
    assert analysis["overallAssessment"]["classGrade"] == "D"


def test_no_data_at_all_is_ungraded():
    analysis = synthesize_analysis({})
    assert analysis["overallAssessment"]["averageScore"] is None
    assert analysis["overallAssessment"]["classGrade"] == "N/A"
    assert analysis["individualInsights"] == []
