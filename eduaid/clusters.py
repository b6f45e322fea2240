import logging

logger = logging.getLogger(__name__)

SCORE_WEIGHTS = {
    'grade': 0.4,
    'attendance': 0.2,
    'participation': 0.2,
    'assignment': 0.1,
    'exam': 0.1,
}

CLUSTER_NAMES = ['highPerformers', 'averagePerformers', 'needsSupport', 'atRisk']

CLUSTER_LABELS = {
    'highPerformers': 'High Performers',
    'averagePerformers': 'Average Performers',
    'needsSupport': 'Needs Support',
    'atRisk': 'At Risk',
}

# Attendance assumed when a sheet has no attendance column
DEFAULT_ATTENDANCE = 100


def calculate_overall_score(record):
    """Weighted score over the fields present, weights renormalized"""
    total_score = 0.0
    total_weight = 0.0
    for field, weight in SCORE_WEIGHTS.items():
        value = record.get(field)
        if value is None:
            continue
        total_score += value * weight
        total_weight += weight
    return total_score / total_weight if total_weight > 0 else 0.0


def assign_cluster(score, attendance):
    if score >= 85 and attendance >= 90:
        return 'highPerformers'
    if score >= 70 and attendance >= 75:
        return 'averagePerformers'
    if score >= 50 or attendance >= 60:
        return 'needsSupport'
    return 'atRisk'


def classify_performance(records):
    """Partition records into the four performance clusters"""
    clusters = {name: [] for name in CLUSTER_NAMES}
    for record in records:
        score = calculate_overall_score(record)
        attendance = record.get('attendance')
        if attendance is None:
            attendance = DEFAULT_ATTENDANCE

        cluster = assign_cluster(score, attendance)
        clusters[cluster].append({**record, 'overallScore': round(score, 2)})

    logger.info(
        "Clusters: " + ", ".join(f"{name}={len(members)}" for name, members in clusters.items())
    )
    return clusters
