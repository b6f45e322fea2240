import logging
from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .clusters import CLUSTER_LABELS, CLUSTER_NAMES

logger = logging.getLogger(__name__)

MAX_STUDENTS_IN_REPORT = 10

HEADER_TABLE_STYLE = TableStyle([
    ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#4A90E2')),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
    ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 10),
    ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
    ('BACKGROUND', (0, 1), (-1, -1), colors.white),
    ('GRID', (0, 0), (-1, -1), 1, colors.black)
])


def _text(value):
    """Plain value -> markup-safe paragraph text"""
    return escape("" if value is None else str(value))


def _bullets(story, items, style):
    for item in items or []:
        story.append(Paragraph(f"• {_text(item)}", style))


def _overall_table(overall):
    average = overall.get("averageScore")
    rows = [
        ["Metric", "Value"],
        ["Class Grade", str(overall.get("classGrade") or "N/A")],
        ["Average Score", f"{average:.1f}%" if isinstance(average, (int, float)) else "N/A"],
        ["Total Students", str(overall.get("totalStudents", 0))],
    ]
    table = Table(rows, colWidths=[2 * inch, 4 * inch])
    table.setStyle(HEADER_TABLE_STYLE)
    return table


def _cluster_table(clusters):
    rows = [["Group", "Students"]]
    for name in CLUSTER_NAMES:
        rows.append([CLUSTER_LABELS.get(name, name), str(len(clusters.get(name) or []))])
    table = Table(rows, colWidths=[3 * inch, 2 * inch])
    table.setStyle(HEADER_TABLE_STYLE)
    return table


def _recommendation_line(rec):
    if not isinstance(rec, dict):
        return _text(rec)
    line = f"<b>{_text(rec.get('course'))}</b>"
    if rec.get("university"):
        line += f" ({_text(rec['university'])})"
    if rec.get("jamb_cutoff"):
        line += f", JAMB {_text(rec['jamb_cutoff'])}"
    if rec.get("reason"):
        line += f": {_text(rec['reason'])}"
    return line


def generate_analysis_pdf(envelope, session_id):
    """Render a stored analysis envelope as a PDF report"""
    analysis = envelope.get("analysisResults") or {}
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter)
    styles = getSampleStyleSheet()
    story = []

    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=24,
        spaceAfter=30,
        textColor=colors.HexColor('#4A90E2'),
        alignment=1
    )
    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=9,
        textColor=colors.grey,
        alignment=1
    )

    story.append(Paragraph("EDU-AID Student Performance Analysis Report", title_style))
    story.append(Paragraph(f"Report ID: {_text(session_id)}", styles['Normal']))
    if envelope.get("fileName"):
        story.append(Paragraph(f"Source file: {_text(envelope['fileName'])}", styles['Normal']))
    story.append(Paragraph(f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", styles['Normal']))
    story.append(Spacer(1, 20))

    overall = analysis.get("overallAssessment")
    if overall:
        story.append(Paragraph("Overall Assessment", styles['Heading2']))
        story.append(_overall_table(overall))
        if overall.get("summary"):
            story.append(Spacer(1, 8))
            story.append(Paragraph(f"Summary: {_text(overall['summary'])}", styles['Normal']))
        story.append(Spacer(1, 20))

    if analysis.get("insights"):
        story.append(Paragraph("Key Insights", styles['Heading2']))
        for index, insight in enumerate(analysis["insights"], start=1):
            story.append(Paragraph(f"{index}. {_text(insight)}", styles['Normal']))
            story.append(Spacer(1, 4))
        story.append(Spacer(1, 16))

    actions = analysis.get("recommendations") or {}
    if any(actions.get(key) for key in ("immediate", "shortTerm", "longTerm")):
        story.append(Paragraph("Recommendations", styles['Heading2']))
        for key, heading in (("immediate", "Immediate Actions"),
                             ("shortTerm", "Short-term Goals"),
                             ("longTerm", "Long-term Strategies")):
            if actions.get(key):
                story.append(Paragraph(heading, styles['Heading3']))
                _bullets(story, actions[key], styles['Normal'])
        story.append(Spacer(1, 16))

    clusters = envelope.get("clusters")
    if clusters:
        story.append(Paragraph("Performance Groups", styles['Heading2']))
        story.append(_cluster_table(clusters))
        story.append(Spacer(1, 20))

    students = analysis.get("individualInsights") or []
    if students:
        story.append(Paragraph("Individual Student Insights", styles['Heading2']))
        for student in students[:MAX_STUDENTS_IN_REPORT]:
            average = student.get("averageScore")
            heading = _text(student.get("studentName"))
            if isinstance(average, (int, float)):
                heading += f" ({average:.1f}%)"
            story.append(Paragraph(heading, styles['Heading3']))
            story.append(Paragraph(
                f"Strengths: {_text(', '.join(map(str, student.get('strengths') or [])) or 'N/A')}",
                styles['Normal']))
            if student.get("insight"):
                story.append(Paragraph(_text(student["insight"]), styles['Normal']))
            for rec in student.get("courseRecommendations") or []:
                story.append(Paragraph(f"• {_recommendation_line(rec)}", styles['Normal']))
            story.append(Spacer(1, 10))
        if len(students) > MAX_STUDENTS_IN_REPORT:
            story.append(Paragraph(
                f"... and {len(students) - MAX_STUDENTS_IN_REPORT} more students", styles['Italic']))

    story.append(Spacer(1, 30))
    story.append(Paragraph("Generated by EDU-AID - AI-Powered Educational Analytics", footer_style))

    doc.build(story)
    buffer.seek(0)
    logger.info(f"PDF report generated for session {session_id}")
    return buffer
