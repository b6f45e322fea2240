"""
EDU_AID analysis pipeline.

    upload -> rows -> normalized records -> statistics + clusters
                   -> subject averages   -> remote model (or rule-based fallback)

analyze_upload() is what the HTTP layer calls; everything below it is
usable on plain lists of row dicts.
"""

import os
import logging
from collections import Counter
from datetime import datetime
from io import BytesIO

import numpy as np
import pandas as pd

from .aggregator import aggregate_subject_scores, count_students_and_subjects, record_grade_averages
from .clusters import classify_performance
from .config import CONFIG
from .errors import EmptyDatasetError, UnsupportedFileTypeError
from .normalizer import normalize_rows
from .recommendations import (
    advisory_actions,
    class_average,
    class_grade,
    synthesize_analysis,
)
from .statistics import analyze_statistics
from .utils import coerce_number, is_missing

logger = logging.getLogger(__name__)

AI_CONFIDENCE = 0.9
QUALITY_FIELDS = ['name', 'id', 'grade', 'attendance', 'participation']

# ========== FILE PARSING ==========

def file_extension(filename):
    return os.path.splitext(filename or "")[1].lower()


def _read_csv(content):
    for encoding in CONFIG["csv_encodings"]:
        try:
            return pd.read_csv(BytesIO(content), encoding=encoding)
        except UnicodeDecodeError:
            continue
    return pd.read_csv(BytesIO(content), encoding='utf-8', encoding_errors='ignore')


def read_upload(content, filename):
    """Decode an uploaded CSV/Excel file into a list of raw row dicts"""
    extension = file_extension(filename)
    if extension not in CONFIG["allowed_extensions"]:
        raise UnsupportedFileTypeError(extension, CONFIG["allowed_extensions"])

    logger.info(f"Processing {filename} as {'CSV' if extension == '.csv' else 'Excel'} file")
    try:
        if extension == '.csv':
            df = _read_csv(content)
        elif extension == '.xls':
            df = pd.read_excel(BytesIO(content), sheet_name=0)
        else:
            df = pd.read_excel(BytesIO(content), sheet_name=0, engine='openpyxl')
    except pd.errors.EmptyDataError:
        raise EmptyDatasetError()

    df = df.dropna(how='all')
    df = df.loc[:, ~df.columns.astype(str).str.contains('^Unnamed')]
    df.columns = df.columns.astype(str).str.strip()

    rows = df.replace({np.nan: None}).to_dict(orient="records")
    logger.info(f"Loaded {len(rows)} rows with columns {list(df.columns)}")
    return rows

# ========== REMOTE MODEL PROMPT ==========

def build_analysis_prompt(subject_averages, context=None):
    context = context or {}
    total_students = context.get("totalStudents") or len(subject_averages)
    total_subjects = context.get("totalSubjects") or 0

    data_lines = []
    for index, (name, subjects) in enumerate(subject_averages.items(), start=1):
        data_lines.append(f"\nStudent {index} ({name}):")
        for subject, score in subjects.items():
            data_lines.append(f"  {subject}: {score}/100")
    data_text = "\n".join(data_lines)

    return f"""
You are EDU_AID, an expert Nigerian university course advisor.

Analyze SS1-SS3 results and for EACH student:
- List top 3 strengths (subjects with average score >70)
- Give 1 key insight about their academic performance
- Recommend 3 suitable university courses with:
  • Specific reason based on their strengths
  • Approximate JAMB cutoff score
  • Required WAEC/O'Level subjects

DATASET OVERVIEW:
- Total Students: {total_students}
- Total Subjects: {total_subjects}
- File: {context.get("fileName") or "Student Performance Data"}

STUDENT DATA:
{data_text}

Return ONLY a valid JSON array (no markdown, no extra text):
[
  {{
    "student_id": "Student Name",
    "strengths": ["Subject1", "Subject2", "Subject3"],
    "insight": "Brief insight about student's academic pattern and potential",
    "recommendations": [
      {{
        "course": "Course Name",
        "university": "UNILAG, OAU, FUTA",
        "reason": "Why this course fits based on their strengths",
        "jamb_cutoff": "250+",
        "waec_required": "Mathematics, English, Physics, Chemistry"
      }}
    ]
  }}
]

IMPORTANT:
1. Consider Nigerian JAMB and WAEC requirements
2. Match courses to student's strongest subjects
3. Provide realistic JAMB cutoffs (200-300 range)
4. List 2-3 reputable Nigerian universities per course
5. Be specific with WAEC subject requirements (typically 5 subjects including English & Math)
6. Return ONLY the JSON array, no other text
"""

# ========== REMOTE MODEL RESPONSE ==========

def _student_average(subject_averages, student_id):
    scores = [
        value for value in (
            coerce_number(score) for score in subject_averages.get(str(student_id), {}).values()
        )
        if value is not None
    ]
    return round(sum(scores) / len(scores), 1) if scores else None


def transform_student_recommendations(entries, subject_averages, statistics=None):
    """Per-student model output -> AnalysisResult"""
    average = class_average(subject_averages, statistics)
    grade = class_grade(average)
    average_text = f"{average:.1f}%" if average is not None else "N/A"
    total = len(entries)

    strength_counts = Counter(
        subject for entry in entries for subject in (entry.get("strengths") or [])
    )
    top_strengths = [
        f"{subject} ({count} students excel)" for subject, count in strength_counts.most_common(3)
    ]
    courses = {
        rec.get("course")
        for entry in entries
        for rec in (entry.get("recommendations") or [])
        if isinstance(rec, dict) and rec.get("course")
    }

    insights = [
        f"Personalized university course recommendations provided for {total} students",
        "Each student matched with 3 suitable courses based on academic strengths",
        "JAMB cutoff scores and WAEC requirements specified for all recommendations",
    ]
    if courses:
        insights.append(f"{len(courses)} different university courses recommended across all students")

    return {
        "overallAssessment": {
            "classGrade": grade,
            "averageScore": round(average, 1) if average is not None else None,
            "totalStudents": total,
            "summary": (
                f"Analysis completed for {total} students. Class average: {average_text}. "
                "University course recommendations provided for each student based on SS1-SS3 performance."
            ),
        },
        "individualInsights": [
            {
                "studentName": entry["student_id"],
                "averageScore": _student_average(subject_averages, entry["student_id"]),
                "strengths": entry.get("strengths") or [],
                "insight": entry.get("insight") or "Performance data analyzed",
                "concerns": entry.get("concerns") or [],
                "recommendations": entry.get("recommendations") or [],
                "courseRecommendations": entry.get("recommendations") or [],
            }
            for entry in entries
        ],
        "studentRecommendations": entries,
        "patterns": {
            "strengths": top_strengths or ["Students show diverse academic strengths"],
            "weaknesses": ["Individual improvement areas identified per student"],
            "trends": [
                f"{total} students analyzed for university readiness",
                "Course recommendations tailored to individual strengths",
            ],
        },
        "recommendations": advisory_actions(statistics),
        "insights": insights,
        "confidence": AI_CONFIDENCE,
        "aiPowered": True,
    }


def calculate_confidence(response):
    score = 0.0
    if response.get("overallAssessment"):
        score += 0.2
    if response.get("individualInsights"):
        score += 0.3
    if response.get("patterns"):
        score += 0.2
    if response.get("recommendations"):
        score += 0.2
    if response.get("insights"):
        score += 0.1
    return min(round(score, 2), 1.0)


def validate_analysis_object(response):
    """Model output already shaped like an AnalysisResult, with defaults filled in"""
    return {
        "overallAssessment": response.get("overallAssessment") or {
            "classGrade": "N/A",
            "averageScore": None,
            "totalStudents": 0,
            "summary": "Analysis completed",
        },
        "individualInsights": response.get("individualInsights") or [],
        "studentRecommendations": response.get("studentRecommendations") or [],
        "patterns": response.get("patterns") or {"strengths": [], "weaknesses": [], "trends": []},
        "recommendations": response.get("recommendations") or {
            "immediate": [], "shortTerm": [], "longTerm": [],
        },
        "insights": response.get("insights") or ["Analysis completed successfully"],
        "confidence": calculate_confidence(response),
        "aiPowered": True,
    }


def _list_of(value, kind):
    return isinstance(value, list) and all(isinstance(item, kind) for item in value)


def _optional(entry, key, check):
    return entry.get(key) is None or check(entry[key])


def _valid_student_entry(entry):
    return (
        isinstance(entry, dict)
        and isinstance(entry.get("student_id"), (str, int, float))
        and not is_missing(entry.get("student_id"))
        and _optional(entry, "strengths", lambda v: _list_of(v, str))
        and _optional(entry, "insight", lambda v: isinstance(v, str))
        and _optional(entry, "concerns", lambda v: _list_of(v, str))
        and _optional(entry, "recommendations", lambda v: _list_of(v, dict))
    )


def _valid_insight(entry):
    return (
        isinstance(entry, dict)
        and _optional(entry, "strengths", lambda v: _list_of(v, str))
        and _optional(entry, "concerns", lambda v: isinstance(v, list))
        and _optional(entry, "recommendations", lambda v: isinstance(v, list))
        and _optional(entry, "courseRecommendations", lambda v: isinstance(v, list))
    )


ANALYSIS_OBJECT_CHECKS = {
    "overallAssessment": lambda v: isinstance(v, dict),
    "individualInsights": lambda v: isinstance(v, list) and all(_valid_insight(item) for item in v),
    "studentRecommendations": lambda v: _list_of(v, dict),
    "patterns": lambda v: isinstance(v, dict) and all(isinstance(x, list) for x in v.values()),
    "recommendations": lambda v: isinstance(v, dict) and all(isinstance(x, list) for x in v.values()),
    "insights": lambda v: isinstance(v, list),
}


def invalid_analysis_keys(payload):
    """Keys of an analysis object whose values have the wrong shape"""
    return [
        key for key, check in ANALYSIS_OBJECT_CHECKS.items()
        if payload.get(key) is not None and not check(payload[key])
    ]


def interpret_ai_payload(payload, subject_averages, statistics=None):
    """
    Turn parsed model JSON into an AnalysisResult.
    Returns None when the payload cannot be used.
    """
    if isinstance(payload, list):
        entries = [entry for entry in payload if _valid_student_entry(entry)]
        if len(entries) < len(payload):
            logger.warning(f"Dropped {len(payload) - len(entries)} malformed student entries from AI response")
        if not entries:
            return None
        return transform_student_recommendations(entries, subject_averages, statistics)

    if isinstance(payload, dict):
        if not any(payload.get(key) for key in ("overallAssessment", "individualInsights", "insights")):
            return None
        invalid = invalid_analysis_keys(payload)
        if invalid:
            logger.warning(f"AI analysis object has malformed fields: {', '.join(invalid)}")
            return None
        return validate_analysis_object(payload)

    return None


def run_insight_analysis(subject_averages, statistics=None, client=None, context=None):
    """Remote analysis when possible, rule-based synthesis otherwise"""
    if client is None or not client.available:
        logger.info("AI model not available, using rule-based analysis")
        return synthesize_analysis(subject_averages, statistics)

    if not subject_averages:
        logger.info("No subject scores to send to the AI model, using rule-based analysis")
        return synthesize_analysis(subject_averages, statistics)

    prompt = build_analysis_prompt(subject_averages, context)
    logger.info(f"Generated prompt length: {len(prompt)}")
    outcome = client.request_json(prompt)

    if outcome.ok:
        try:
            analysis = interpret_ai_payload(outcome.payload, subject_averages, statistics)
        except (TypeError, KeyError, AttributeError, ValueError) as e:
            logger.warning(f"Malformed AI analysis payload: {str(e)}")
            analysis = None
        if analysis is not None:
            return analysis
        logger.warning("AI response had no usable analysis, using rule-based analysis")
    else:
        logger.warning(f"AI analysis failed ({outcome.reason}), using rule-based analysis")

    return synthesize_analysis(subject_averages, statistics)

# ========== DATA QUALITY ==========

def assess_data_quality(records):
    quality = {}
    total = len(records)
    for field in QUALITY_FIELDS:
        available = len([r for r in records if not is_missing(r.get(field))])
        quality[field] = {
            "availableRecords": available,
            "completeness": (available / total * 100) if total else 0.0,
        }

    completeness = sum(q["completeness"] for q in quality.values()) / len(QUALITY_FIELDS)
    if completeness > 80:
        rating = "Good"
    elif completeness > 60:
        rating = "Fair"
    else:
        rating = "Poor"

    return {
        "fields": quality,
        "overall": {"completeness": round(completeness, 2), "rating": rating},
    }

# ========== ENTRY POINTS ==========

def analyze_rows(rows, client=None, file_name=None):
    """
    Full analysis of decoded rows. Raises EmptyDatasetError when no row
    carries a student identifier.
    """
    records = normalize_rows(rows)
    statistics = analyze_statistics(records)
    clusters = classify_performance(records)
    subject_averages = aggregate_subject_scores(rows)
    if not subject_averages:
        # No term columns: per-student insights come from the grade column
        subject_averages = record_grade_averages(records)
    total_students, total_subjects = count_students_and_subjects(rows)

    context = {
        "fileName": file_name,
        "totalStudents": total_students,
        "totalSubjects": total_subjects,
    }
    analysis = run_insight_analysis(subject_averages, statistics, client, context)

    return {
        "fileName": file_name,
        "totalStudents": total_students,
        "totalSubjects": total_subjects,
        "analysisResults": analysis,
        "subjectAverages": subject_averages,
        "statistics": statistics,
        "clusters": clusters,
        "dataQuality": assess_data_quality(records),
        "timestamp": datetime.now().isoformat(),
    }


def analyze_upload(content, filename, client=None):
    rows = read_upload(content, filename)
    return analyze_rows(rows, client=client, file_name=filename)
