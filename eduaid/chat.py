import logging

from .insight_client import strip_code_fences
from .config import CONFIG

logger = logging.getLogger(__name__)

BASE_PROMPT = """You are EDU_AID, an intelligent educational assistant specializing in student performance analysis and academic guidance.

Your capabilities include:
- Analyzing student performance data (Excel/CSV files with student grades)
- Providing insights on academic trends and performance patterns
- Recommending Nigerian university courses based on student strengths
- Offering personalized academic guidance and study recommendations
- Helping with JAMB/WAEC requirements and university admissions

Guidelines:
- Be helpful, friendly, and professional
- Provide specific, actionable advice
- Use data-driven insights when available
- Focus on Nigerian educational context
- Keep responses concise but comprehensive"""


def _fmt(value, suffix=""):
    return f"{value:.1f}{suffix}" if isinstance(value, (int, float)) else "N/A"


def summarize_analysis_context(envelope):
    """Short bullet summary of an analysis envelope for the chat prompt"""
    lines = []
    if envelope.get("totalStudents"):
        lines.append(f"- Total Students Analyzed: {envelope['totalStudents']}")

    statistics = envelope.get("statistics") or {}
    grade = statistics.get("grade")
    if grade:
        lines.append(f"- Average Grade: {_fmt(grade.get('mean'))}/100")
        lines.append(f"- Grade Range: {_fmt(grade.get('min'))} - {_fmt(grade.get('max'))}")
    attendance = statistics.get("attendance")
    if attendance:
        lines.append(f"- Average Attendance: {_fmt(attendance.get('mean'), '%')}")

    clusters = envelope.get("clusters")
    if clusters:
        lines.append(f"- High Performers: {len(clusters.get('highPerformers') or [])} students")
        lines.append(f"- Need Support: {len(clusters.get('needsSupport') or [])} students")
        lines.append(f"- At Risk: {len(clusters.get('atRisk') or [])} students")

    analysis = envelope.get("analysisResults") or {}
    overall = analysis.get("overallAssessment") or {}
    if overall.get("classGrade"):
        lines.append(f"- Class Grade: {overall['classGrade']} (average {_fmt(overall.get('averageScore'), '%')})")
    if analysis.get("insights"):
        lines.append(f"- Key Insights: {'; '.join(map(str, analysis['insights'][:3]))}")
    weaknesses = (analysis.get("patterns") or {}).get("weaknesses")
    if weaknesses:
        lines.append(f"- Main Concerns: {'; '.join(map(str, weaknesses[:2]))}")

    return "\n".join(lines) or "Analysis data available but summary could not be generated."


def build_chat_prompt(message, envelope=None):
    if envelope:
        return f"""{BASE_PROMPT}

CURRENT ANALYSIS CONTEXT:
{summarize_analysis_context(envelope)}

Based on this analysis data and the user's question below, provide a helpful response that references the specific data when relevant.

USER QUESTION: {message}"""

    return f"""{BASE_PROMPT}

USER QUESTION: {message}

Provide a helpful response. If the question relates to student performance analysis, you may suggest that they upload and analyze their data first for more specific insights."""


def chat_with_analysis(message, envelope=None, client=None):
    """Answer a chat message, grounded in the analysis when one is given"""
    if client is None or not client.available:
        return "Error: AI model not configured. Please set GROQ_API_KEY to enable chat."

    prompt = build_chat_prompt(message, envelope)
    text = client.complete(prompt, max_tokens=CONFIG["chat_max_tokens"])
    return strip_code_fences(text)
