"""
Row normalization for uploaded score sheets.

Uploads come from different schools and spreadsheet templates, so column
names vary ("Student_ID", "student id", "Full Name", ...). Every column is
reduced to a canonical key and looked up in FIELD_SYNONYMS.
"""

import logging

from .utils import canonical_key, clean_text, coerce_number, is_missing

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = ['grade', 'attendance', 'participation', 'assignment', 'exam', 'quiz']

FIELD_SYNONYMS = {
    'name': ['name', 'student_name', 'studentname', 'full_name', 'student'],
    'id': ['id', 'student_id', 'studentid', 'roll_no', 'rollno'],
    'grade': ['grade', 'score', 'marks', 'total_marks', 'final_grade', 'overall_grade'],
    'attendance': ['attendance', 'attendance_rate', 'attendance_percentage'],
    'participation': ['participation', 'participation_score', 'class_participation'],
    'assignment': ['assignment', 'assignment_score', 'assignments'],
    'exam': ['exam', 'exam_score', 'final_exam', 'midterm'],
    'quiz': ['quiz', 'quiz_score', 'quizzes'],
    'subject': ['subject', 'subject_name', 'course', 'class'],
}

# synonym -> (field, rank); earlier synonyms rank higher
_SYNONYM_LOOKUP = {
    synonym: (field, rank)
    for field, synonyms in FIELD_SYNONYMS.items()
    for rank, synonym in enumerate(synonyms)
}


def canonical_field(column):
    """Canonical field for a raw column name, or None if it is not recognized"""
    entry = _SYNONYM_LOOKUP.get(canonical_key(column))
    return entry[0] if entry else None


def map_fields(raw_row):
    """
    Raw values keyed by canonical field. When several columns map to one
    field, the best-ranked synonym with a value wins ("Subject" beats
    "Class"); among equal ranks the later column wins.
    """
    mapped = {}
    ranks = {}
    for column, value in raw_row.items():
        entry = _SYNONYM_LOOKUP.get(canonical_key(column))
        if not entry:
            continue
        field, rank = entry
        if is_missing(value):
            rank = float('inf')
        if field in ranks and rank > ranks[field]:
            continue
        mapped[field] = value
        ranks[field] = rank
    return mapped


def _identity(mapped):
    name = clean_text(mapped.get('name'))
    student_id = clean_text(mapped.get('id'))
    subject = clean_text(mapped.get('subject'))
    return name or student_id, name, student_id, subject


def resolve_identity(raw_row):
    """(identifier, name, id, subject) text values of a raw row"""
    return _identity(map_fields(raw_row))


def normalize_row(raw_row):
    """
    Map one raw spreadsheet row to a student record.
    Returns None for rows with neither a name nor an id.
    """
    mapped = map_fields(raw_row)
    identifier, name, student_id, subject = _identity(mapped)
    if not identifier:
        return None

    record = {
        'identifier': identifier,
        'name': name,
        'id': student_id,
        'subject': subject,
    }
    for field in NUMERIC_FIELDS:
        record[field] = coerce_number(mapped[field]) if field in mapped else None
    return record


def normalize_rows(rows):
    records = [record for record in (normalize_row(row) for row in rows) if record]
    dropped = len(rows) - len(records)
    if dropped:
        logger.info(f"Dropped {dropped} of {len(rows)} rows without a student identifier")
    return records
