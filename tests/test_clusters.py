import pytest

from eduaid.clusters import CLUSTER_NAMES, assign_cluster, calculate_overall_score, classify_performance


def test_strong_grade_and_attendance_is_high_performer():
    clusters = classify_performance([{"identifier": "Ada", "grade": 90, "attendance": 95}])
    assert len(clusters["highPerformers"]) == 1
    member = clusters["highPerformers"][0]
    assert member["identifier"] == "Ada"
    assert member["overallScore"] == pytest.approx(91.67)


def test_weak_grade_and_attendance_is_at_risk():
    clusters = classify_performance([{"identifier": "Bola", "grade": 40, "attendance": 50}])
    assert len(clusters["atRisk"]) == 1
    assert clusters["atRisk"][0]["overallScore"] == pytest.approx(43.33)


def test_weights_renormalize_over_present_fields():
    assert calculate_overall_score({"grade": 80}) == pytest.approx(80)
    assert calculate_overall_score({}) == 0.0


def test_missing_attendance_assumed_full():
    clusters = classify_performance([{"identifier": "Chi", "grade": 88}])
    assert len(clusters["highPerformers"]) == 1


def test_cluster_ladder():
    assert assign_cluster(85, 90) == "highPerformers"
    assert assign_cluster(85, 89) == "averagePerformers"
    assert assign_cluster(70, 75) == "averagePerformers"
    assert assign_cluster(45, 60) == "needsSupport"
    assert assign_cluster(55, 10) == "needsSupport"
    assert assign_cluster(49, 59) == "atRisk"


def test_every_record_lands_in_exactly_one_cluster(graded_records):
    clusters = classify_performance(graded_records)
    assert set(clusters) == set(CLUSTER_NAMES)
    members = [m["identifier"] for group in clusters.values() for m in group]
    assert sorted(members) == sorted(r["identifier"] for r in graded_records)
