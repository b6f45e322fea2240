import logging

import plotly.express as px
import plotly.graph_objects as go

from .aggregator import subject_means
from .clusters import CLUSTER_LABELS, CLUSTER_NAMES

logger = logging.getLogger(__name__)

THEME = {
    "bg": "#FFFFFF",
    "text": "#31333F",
    "primary": "#4A90E2",
    "secondary": "#F0F2F6",
    "chart_bg": "#FFFFFF",
}


def _style(fig):
    fig.update_layout(
        plot_bgcolor=THEME['chart_bg'],
        paper_bgcolor=THEME['bg'],
        font_color=THEME['text']
    )
    return fig


def subject_averages_chart(subject_averages):
    means = subject_means(subject_averages, decimals=1)
    if not means:
        return None
    fig = px.bar(
        x=list(means.keys()),
        y=list(means.values()),
        labels={'x': 'Subject', 'y': 'Class Average'},
        title='Class Average by Subject',
        color_discrete_sequence=[THEME['primary']]
    )
    fig.update_yaxes(range=[0, 100])
    return _style(fig)


def cluster_distribution_chart(clusters):
    counts = {
        CLUSTER_LABELS[name]: len((clusters or {}).get(name) or [])
        for name in CLUSTER_NAMES
    }
    if not any(counts.values()):
        return None
    fig = go.Figure(data=[go.Pie(labels=list(counts.keys()), values=list(counts.values()), hole=0.3)])
    fig.update_layout(title='Performance Groups')
    return _style(fig)


def student_average_chart(analysis):
    averages = [
        student["averageScore"]
        for student in (analysis or {}).get("individualInsights") or []
        if isinstance(student.get("averageScore"), (int, float))
    ]
    if not averages:
        return None
    fig = px.histogram(x=averages, nbins=10, labels={'x': 'Average Score'},
                       title='Distribution of Student Averages')
    return _style(fig)


def generate_dashboard_charts(envelope):
    """Plotly figure JSON keyed by chart name; charts with no data are left out"""
    builders = {
        "subject_averages": lambda: subject_averages_chart(envelope.get("subjectAverages")),
        "cluster_distribution": lambda: cluster_distribution_chart(envelope.get("clusters")),
        "student_averages": lambda: student_average_chart(envelope.get("analysisResults")),
    }
    charts = {}
    for name, build in builders.items():
        try:
            fig = build()
        except Exception as e:
            logger.error(f"Error creating {name} chart: {str(e)}", exc_info=True)
            continue
        if fig is not None:
            charts[name] = fig.to_json()
    return charts
