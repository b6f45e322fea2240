"""
Rule-based analysis used whenever the remote model cannot be used.

synthesize_analysis() must always hand back a complete result: it is the
only handler of remote failures, so nothing in here may raise to the caller.
"""

import logging

from .aggregator import overall_mean, subject_means
from .config import CONFIG
from .courses import COURSE_RULES, FILLER_COURSES, as_recommendation
from .utils import coerce_number

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.8


def class_grade(average):
    if average is None:
        return "N/A"
    if average >= 80:
        return "A"
    if average >= 70:
        return "B"
    if average >= 60:
        return "C"
    if average >= 50:
        return "D"
    return "F"


def _scores(subjects):
    """Subject scores as floats, dropping anything unparseable"""
    scores = {}
    for subject, score in (subjects or {}).items():
        value = coerce_number(score)
        if value is not None:
            scores[subject] = value
    return scores


def _average(values):
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def select_strengths(scores):
    """Top subjects at or above the strength threshold, best first"""
    eligible = [
        (subject, score) for subject, score in scores.items()
        if score >= CONFIG["strength_threshold"]
    ]
    # sorted() is stable, so equal scores keep their subject order
    eligible = sorted(eligible, key=lambda item: item[1], reverse=True)
    return [subject for subject, _ in eligible[:CONFIG["max_strengths"]]]


def _rule_matches(rule, strengths, subject_map):
    if not any(subject.lower() in rule["gate"] for subject in strengths):
        return False
    for requirement in rule["requires"]:
        if all(
            subject_map.get(subject) is not None and subject_map[subject] >= minimum
            for subject, minimum in requirement.items()
        ):
            return True
    return False


def recommend_courses(strengths, scores, average):
    """Exactly `recommendations_per_student` course recommendations"""
    limit = CONFIG["recommendations_per_student"]
    subject_map = {subject.lower(): score for subject, score in scores.items()}

    recommendations = [
        as_recommendation(rule) for rule in COURSE_RULES
        if _rule_matches(rule, strengths, subject_map)
    ]

    # Gated fillers first; the ungated pass keeps the count guarantee when
    # a weak student matches no rule at all
    for respect_gate in (True, False):
        for filler in FILLER_COURSES:
            if len(recommendations) >= limit:
                break
            if respect_gate and filler["min_average"] is not None and average < filler["min_average"]:
                continue
            if any(rec["course"] == filler["course"] for rec in recommendations):
                continue
            recommendations.append(as_recommendation(filler))

    return recommendations[:limit]


def student_insight(strengths, average):
    listed = ", ".join(strengths)
    if average >= 80:
        return (f"Exceptional academic performance with consistent excellence in {listed}. "
                "Strong candidate for competitive university programs.")
    if average >= 70:
        return (f"Solid academic foundation with notable strengths in {listed}. "
                "Well-positioned for university admission in related fields.")
    if average >= 60:
        return (f"Moderate performance with potential in {listed}. "
                "Focus on strengthening core subjects for better university prospects.")
    return (f"Shows promise in {listed or 'selected areas'}. "
            "Requires additional support to improve overall academic standing.")


def analyze_student(student_name, subjects):
    scores = _scores(subjects)
    average = _average(scores.values())
    strengths = select_strengths(scores)
    courses = recommend_courses(strengths, scores, average)
    return {
        "studentName": student_name,
        "averageScore": round(average, 1),
        "strengths": strengths,
        "insight": student_insight(strengths, average),
        "concerns": [s for s, score in scores.items() if score < CONFIG["concern_threshold"]],
        "recommendations": courses,
        "courseRecommendations": courses,
    }


def subject_class_averages(subject_averages):
    return subject_means(subject_averages)


def statistics_recommendations(statistics):
    """Advisory actions driven by grade and attendance statistics"""
    actions = {"immediate": [], "shortTerm": [], "longTerm": []}
    if not statistics:
        return actions

    grade = statistics.get("grade")
    if grade:
        if grade.get("mean") is not None and grade["mean"] < 70:
            actions["immediate"].append("Review curriculum difficulty and teaching methods")
            actions["shortTerm"].append("Implement additional support sessions")
        if grade.get("standardDeviation") is not None and grade["standardDeviation"] > 20:
            actions["immediate"].append("Address performance disparities between students")

    attendance = statistics.get("attendance")
    if attendance and attendance.get("mean") is not None and attendance["mean"] < 80:
        actions["immediate"].append("Investigate attendance issues and implement engagement strategies")
        actions["shortTerm"].append("Develop attendance improvement plan")
    return actions


def advisory_actions(statistics=None):
    """Class-level course guidance actions plus the statistics-driven ones"""
    actions = {
        "immediate": [
            "Review individual student course recommendations",
            "Discuss JAMB preparation strategies with students",
            "Ensure students meet WAEC requirements for recommended courses",
        ],
        "shortTerm": [
            "Arrange university career guidance sessions",
            "Connect students with alumni in recommended fields",
            "Organize JAMB/UTME preparation programs",
        ],
        "longTerm": [
            "Track student university admissions success",
            "Build partnerships with recommended universities",
            "Develop subject-specific excellence programs",
        ],
    }
    for horizon, extra in statistics_recommendations(statistics).items():
        actions[horizon].extend(extra)
    return actions


def class_average(subject_averages, statistics=None):
    average = overall_mean(subject_averages)
    if average is not None:
        return average
    grade = (statistics or {}).get("grade") or {}
    return grade.get("mean")


def synthesize_analysis(subject_averages, statistics=None):
    """
    Deterministic analysis built from {student: {subject: score}} and the
    class statistics. Always returns a complete result.
    """
    try:
        return _synthesize(subject_averages or {}, statistics)
    except Exception as e:
        logger.error(f"Error in synthesize_analysis: {str(e)}", exc_info=True)
        return minimal_analysis(len(subject_averages or {}))


def _synthesize(subject_averages, statistics):
    student_count = len(subject_averages)
    subject_means = subject_class_averages(subject_averages)
    average = class_average(subject_averages, statistics)
    grade = class_grade(average)
    average_text = f"{average:.1f}%" if average is not None else "N/A"

    individual_insights = [
        analyze_student(name, subjects) for name, subjects in subject_averages.items()
    ]

    strong_subjects = [s for s, avg in subject_means.items() if avg >= CONFIG["strong_subject_threshold"]]
    weak_subjects = [s for s, avg in subject_means.items() if avg < CONFIG["weak_subject_threshold"]]

    recommendations = advisory_actions(statistics)

    at_or_above = len([s for s in individual_insights if s["averageScore"] >= CONFIG["strength_threshold"]])
    share = round(at_or_above / student_count * 100) if student_count else 0

    insights = [
        f"Class of {student_count} students analyzed across {len(subject_means)} subjects",
        f"Overall class average: {average_text} ({grade} grade)",
        f"Personalized university course recommendations provided for all {student_count} students",
        f"Strongest subjects: {', '.join(strong_subjects)}" if strong_subjects
        else "No dominant strong subjects identified",
        f"{share}% of students performing at or above {CONFIG['strength_threshold']}%",
    ]

    logger.info(f"Fallback analysis generated for {student_count} students (class grade {grade})")
    return {
        "overallAssessment": {
            "classGrade": grade,
            "averageScore": round(average, 1) if average is not None else None,
            "totalStudents": student_count,
            "summary": (
                f"Class of {student_count} students shows {grade} performance with "
                f"{average_text} average across {len(subject_means)} subjects. "
                "University course recommendations generated for all students based on individual strengths."
            ),
        },
        "individualInsights": individual_insights,
        "studentRecommendations": [
            {
                "student_id": student["studentName"],
                "strengths": student["strengths"],
                "insight": student["insight"],
                "recommendations": student["courseRecommendations"],
            }
            for student in individual_insights
        ],
        "patterns": {
            "strengths": [f"Strong class performance in {', '.join(strong_subjects)}"] if strong_subjects
            else ["Overall steady performance maintained"],
            "weaknesses": [f"Class struggles with {', '.join(weak_subjects)}"] if weak_subjects
            else ["No major subject weaknesses identified"],
            "trends": [
                f"Average class score: {average_text}",
                f"{student_count} students analyzed for university readiness",
                "Course recommendations tailored to individual strengths",
            ],
        },
        "recommendations": recommendations,
        "insights": insights,
        "confidence": FALLBACK_CONFIDENCE,
        "aiPowered": False,
    }


def minimal_analysis(student_count=0):
    """Bare but complete result, used only if the rule engine itself breaks"""
    return {
        "overallAssessment": {
            "classGrade": "N/A",
            "averageScore": None,
            "totalStudents": student_count,
            "summary": f"Analysis completed for {student_count} students with limited data.",
        },
        "individualInsights": [],
        "studentRecommendations": [],
        "patterns": {"strengths": [], "weaknesses": [], "trends": []},
        "recommendations": {
            "immediate": ["Review student performance data"],
            "shortTerm": ["Implement targeted interventions"],
            "longTerm": ["Develop comprehensive improvement plan"],
        },
        "insights": ["Detailed analysis unavailable for this dataset"],
        "confidence": 0.3,
        "aiPowered": False,
    }
