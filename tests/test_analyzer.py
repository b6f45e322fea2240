import json

import pytest

from eduaid.analyzer import (
    analyze_rows,
    analyze_upload,
    assess_data_quality,
    build_analysis_prompt,
    read_upload,
    run_insight_analysis,
)
from eduaid.chat import summarize_analysis_context
from eduaid.errors import EmptyDatasetError, UnsupportedFileTypeError
from eduaid.reports import generate_analysis_pdf

AI_REPLY = [
    {
        "student_id": "Ada Obi",
        "strengths": ["Mathematics", "Physics"],
        "insight": "Strong quantitative profile",
        "recommendations": [
            {"course": "Computer Engineering", "university": "UNILAG", "reason": "Maths and Physics",
             "jamb_cutoff": "260+", "waec_required": "Mathematics, Physics, Chemistry, English"},
        ],
    },
    {
        "student_id": "Tunde Bello",
        "strengths": ["Government", "Economics"],
        "insight": "Strong humanities profile",
        "recommendations": [
            {"course": "Law", "university": "UI", "reason": "Government",
             "jamb_cutoff": "270+", "waec_required": "English, Literature, Government"},
        ],
    },
]


def test_remote_timeout_falls_back_to_rules(term_rows, make_client):
    envelope = analyze_rows(term_rows, client=make_client(error=TimeoutError()))
    analysis = envelope["analysisResults"]
    assert analysis["aiPowered"] is False
    assert len(analysis["individualInsights"]) == 2
    assert envelope["totalStudents"] == 2
    assert envelope["totalSubjects"] == 5


def test_remote_analysis_used_when_valid(term_rows, make_client):
    reply = "```json\n" + json.dumps(AI_REPLY) + "\n```"
    analysis = analyze_rows(term_rows, client=make_client(reply=reply))["analysisResults"]
    assert analysis["aiPowered"] is True
    assert analysis["confidence"] == 0.9
    ada = analysis["individualInsights"][0]
    assert ada["studentName"] == "Ada Obi"
    assert ada["averageScore"] == 72.7
    assert ada["courseRecommendations"][0]["course"] == "Computer Engineering"
    assert analysis["overallAssessment"]["classGrade"] == "B"


@pytest.mark.parametrize("reply", ["[]", '{"unrelated": true}', '[{"strengths": ["Maths"]}]', "42"])
def test_unusable_remote_payload_falls_back(term_rows, make_client, reply):
    analysis = analyze_rows(term_rows, client=make_client(reply=reply))["analysisResults"]
    assert analysis["aiPowered"] is False


def test_no_client_uses_rules(offline_client):
    analysis = run_insight_analysis({"Ada": {"Mathematics": 80}}, client=offline_client)
    assert analysis["aiPowered"] is False


def test_prompt_lists_every_student_score():
    prompt = build_analysis_prompt({"Ada": {"Mathematics": 85.0}}, {"totalStudents": 1, "totalSubjects": 1})
    assert "Student 1 (Ada):" in prompt
    assert "Mathematics: 85.0/100" in prompt


def test_envelope_shape(term_rows):
    envelope = analyze_rows(term_rows, file_name="results.csv")
    assert set(envelope) == {
        "fileName", "totalStudents", "totalSubjects", "analysisResults", "subjectAverages",
        "statistics", "clusters", "dataQuality", "timestamp",
    }
    assert envelope["subjectAverages"]["Ada Obi"]["Mathematics"] == 85.0
    assert envelope["fileName"] == "results.csv"


def test_unidentified_rows_are_an_empty_dataset():
    with pytest.raises(EmptyDatasetError):
        analyze_rows([{"Subject": "Mathematics", "SS1_1st": 80}])


def test_csv_upload_is_read():
    content = b"Full Name,Subject,SS1_1st,SS1_2nd,,\nAda Obi,Mathematics,80,90,,\n,,,,,\n"
    rows = read_upload(content, "Results.CSV")
    assert rows == [{"Full Name": "Ada Obi", "Subject": "Mathematics", "SS1_1st": 80, "SS1_2nd": 90}]


def test_latin1_csv_is_read():
    content = "Full Name,Subject,SS1_1st\nAdé Obi,Mathematics,80\n".encode("latin1")
    rows = read_upload(content, "results.csv")
    assert rows[0]["Full Name"] == "Adé Obi"


def test_unsupported_extension_rejected():
    with pytest.raises(UnsupportedFileTypeError) as excinfo:
        read_upload(b"irrelevant", "results.pdf")
    assert excinfo.value.extension == ".pdf"
    assert ".csv" in str(excinfo.value)


def test_empty_upload_rejected():
    with pytest.raises(EmptyDatasetError):
        analyze_upload(b"", "results.csv")


def test_data_quality_rating(graded_records):
    quality = assess_data_quality(graded_records)
    assert quality["fields"]["grade"]["completeness"] == 100.0
    assert quality["fields"]["id"]["completeness"] == 0.0
    assert quality["overall"]["completeness"] == 60.0
    assert quality["overall"]["rating"] == "Poor"


@pytest.mark.parametrize("reply", [
    {"overallAssessment": "Good class overall", "insights": ["ok"]},
    {"overallAssessment": {"classGrade": "B"}, "insights": "text"},
    {"overallAssessment": {"classGrade": "B"}, "recommendations": "study more"},
    {"overallAssessment": {"classGrade": "B"}, "recommendations": {"immediate": "study more"}},
    {"individualInsights": ["Ada is strong"]},
    {"individualInsights": [{"studentName": "Ada", "strengths": "Mathematics"}]},
    {"insights": ["ok"], "patterns": ["diverse"]},
])
def test_wrongly_typed_analysis_object_falls_back(term_rows, make_client, reply):
    envelope = analyze_rows(term_rows, client=make_client(reply=json.dumps(reply)))
    analysis = envelope["analysisResults"]
    assert analysis["aiPowered"] is False
    assert isinstance(analysis["overallAssessment"], dict)
    assert generate_analysis_pdf(envelope, "session-1").getvalue().startswith(b"%PDF")
    assert "Class Grade" in summarize_analysis_context(envelope)


def test_well_typed_analysis_object_is_used(term_rows, make_client):
    reply = {
        "overallAssessment": {"classGrade": "B", "averageScore": 74.0, "totalStudents": 2, "summary": "Solid"},
        "individualInsights": [{"studentName": "Ada Obi", "strengths": ["Mathematics"], "courseRecommendations": []}],
        "patterns": {"strengths": ["Mathematics"], "weaknesses": [], "trends": []},
        "insights": ["ok"],
    }
    analysis = analyze_rows(term_rows, client=make_client(reply=json.dumps(reply)))["analysisResults"]
    assert analysis["aiPowered"] is True
    assert analysis["overallAssessment"]["summary"] == "Solid"
    assert analysis["recommendations"] == {"immediate": [], "shortTerm": [], "longTerm": []}


def test_malformed_student_entries_are_dropped(term_rows, make_client):
    reply = AI_REPLY + [
        {"student_id": "Chidi", "strengths": "Biology"},
        {"student_id": ["Emeka"], "strengths": []},
        {"student_id": "Ngozi", "recommendations": "Medicine"},
    ]
    analysis = analyze_rows(term_rows, client=make_client(reply=json.dumps(reply)))["analysisResults"]
    assert analysis["aiPowered"] is True
    assert [s["studentName"] for s in analysis["individualInsights"]] == ["Ada Obi", "Tunde Bello"]


def test_grade_only_sheet_gets_individual_insights(make_client):
    rows = [
        {"Name": "Ada", "Grade": 85, "Attendance": 95},
        {"Name": "Bola", "Grade": 45, "Attendance": 60},
    ]
    envelope = analyze_rows(rows, client=make_client(error=TimeoutError()))
    analysis = envelope["analysisResults"]
    assert analysis["aiPowered"] is False
    assert envelope["subjectAverages"] == {"Ada": {"Overall": 85.0}, "Bola": {"Overall": 45.0}}
    assert [s["studentName"] for s in analysis["individualInsights"]] == ["Ada", "Bola"]
    assert envelope["totalSubjects"] == 0
