import logging

import pandas as pd

from .config import CONFIG
from .normalizer import resolve_identity
from .utils import canonical_key, clean_text, coerce_number

logger = logging.getLogger(__name__)

# Term score columns, current SS1-SS3 x term layout first, then the legacy
# one-score-per-year layout
TERM_COLUMNS = [
    'SS1_1st', 'SS1_2nd', 'SS1_3rd',
    'SS2_1st', 'SS2_2nd', 'SS2_3rd',
    'SS3_1st', 'SS3_2nd', 'SS3_3rd',
    'SS1_Score', 'SS2_Score', 'SS3_Score',
]

# Only explicit subject columns name a subject here; "Class" or "Course"
# columns on a results sheet usually hold the form (e.g. SS3A)
SUBJECT_COLUMNS = ('subject', 'subject_name')

DUPLICATE_POLICIES = ("last", "average")

# Label used when a sheet has grades but no subject column
OVERALL_SUBJECT = "Overall"

SCORE_COLUMNS = ['student', 'subject', 'score']


def row_subject(raw_row):
    subject = None
    for column, value in raw_row.items():
        if canonical_key(column) in SUBJECT_COLUMNS:
            subject = clean_text(value) or subject
    return subject


def _valid_scores(series):
    scores = pd.to_numeric(series.map(coerce_number), errors='coerce')
    return scores.where(scores >= 0)


def term_scores(raw_row):
    """Valid (numeric, non-negative) term scores of a row, in column order"""
    by_key = {canonical_key(column): value for column, value in raw_row.items()}
    values = pd.Series([by_key.get(canonical_key(column)) for column in TERM_COLUMNS], dtype=object)
    return _valid_scores(values).dropna().tolist()


def term_score_frame(rows):
    """
    Long frame with one row per valid term score:
    row (position in the upload), student, subject, term, score.

    Rows without a student identifier or a subject are left out.
    """
    wide = []
    for position, raw_row in enumerate(rows):
        identifier = resolve_identity(raw_row)[0]
        subject = row_subject(raw_row)
        if not identifier or not subject:
            continue
        by_key = {canonical_key(column): value for column, value in raw_row.items()}
        entry = {'row': position, 'student': identifier, 'subject': subject}
        for column in TERM_COLUMNS:
            entry[column] = by_key.get(canonical_key(column))
        wide.append(entry)

    if not wide:
        return pd.DataFrame(columns=['row', 'student', 'subject', 'term', 'score'])

    long_df = pd.DataFrame(wide).melt(
        id_vars=['row', 'student', 'subject'],
        value_vars=TERM_COLUMNS,
        var_name='term',
        value_name='score',
    )
    long_df['score'] = _valid_scores(long_df['score'])
    long_df = long_df.dropna(subset=['score'])
    return long_df.sort_values('row', kind='stable').reset_index(drop=True)


def _to_nested(means):
    nested = {}
    for (student, subject), score in means.items():
        nested.setdefault(student, {})[subject] = float(score)
    return nested


def aggregate_subject_scores(rows, policy=None):
    """
    Group rows into {student: {subject: average term score}}.

    Rows without a student identifier or a subject are skipped, and so are
    (student, subject) pairs without any valid term score.
    """
    policy = policy or CONFIG["duplicate_subject_policy"]
    if policy not in DUPLICATE_POLICIES:
        raise ValueError(f"Unknown duplicate subject policy: {policy}")

    df = term_score_frame(rows)
    if df.empty:
        return {}

    if policy == "last":
        last_row = df.groupby(['student', 'subject'])['row'].transform('max')
        overwritten = df.loc[df['row'] != last_row, 'row'].nunique()
        if overwritten:
            logger.debug(f"{overwritten} duplicate subject rows replaced by later rows")
        df = df[df['row'] == last_row]

    means = df.groupby(['student', 'subject'], sort=False)['score'].mean().round(1)
    return _to_nested(means)


def record_grade_averages(records):
    """
    {student: {subject: mean grade}} from normalized records, for sheets
    that carry a grade column instead of term columns.
    """
    df = pd.DataFrame(records, columns=['identifier', 'subject', 'grade'])
    df['grade'] = pd.to_numeric(df['grade'], errors='coerce')
    df = df.dropna(subset=['identifier', 'grade'])
    if df.empty:
        return {}
    df['subject'] = df['subject'].fillna(OVERALL_SUBJECT)
    means = df.groupby(['identifier', 'subject'], sort=False)['grade'].mean().round(1)
    return _to_nested(means)


def count_students_and_subjects(rows):
    """Distinct student identifiers and subject names found in the raw rows"""
    students = set()
    subjects = set()
    for raw_row in rows:
        identifier = resolve_identity(raw_row)[0]
        subject = row_subject(raw_row)
        if identifier:
            students.add(identifier)
        if subject:
            subjects.add(subject)
    return len(students), len(subjects)

# ========== CLASS-LEVEL MEANS ==========

def scores_frame(subject_averages):
    """{student: {subject: score}} as a long student/subject/score frame"""
    df = pd.DataFrame(
        [
            (student, subject, score)
            for student, subjects in (subject_averages or {}).items()
            for subject, score in (subjects or {}).items()
        ],
        columns=SCORE_COLUMNS,
    )
    df['score'] = pd.to_numeric(df['score'].map(coerce_number), errors='coerce')
    return df.dropna(subset=['score'])


def subject_means(subject_averages, decimals=None):
    """Class mean per subject, in first-seen subject order"""
    df = scores_frame(subject_averages)
    means = df.groupby('subject', sort=False)['score'].mean()
    if decimals is not None:
        means = means.round(decimals)
    return {subject: float(score) for subject, score in means.items()}


def overall_mean(subject_averages):
    """Mean of every student/subject score, or None when there are none"""
    df = scores_frame(subject_averages)
    if df.empty:
        return None
    return float(df['score'].mean())
