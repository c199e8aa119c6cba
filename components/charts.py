import numpy as np
import plotly.express as px
import plotly.graph_objects as go

CLASS_COLORS = {
    'male': '#003865',    # Navy
    'female': '#78BE21',  # Green
    'balanced': '#A0A8B8',  # Gray
}

CLASS_LABELS = {
    'male': 'Male-Dominated',
    'female': 'Female-Dominated',
    'balanced': 'Balanced',
}

STATUS_COLORS = {
    'Private': '#A0A8B8',
    'Shared': '#2E86C1',
    'Submitted': '#F39C12',
    'In Compliance': '#1E8449',
    'Out of Compliance': '#C0392B',
}


def create_pay_line_chart(result):
    """Scatter of class pay against points with the predicted pay line"""
    fig = go.Figure()

    for classification in ('male', 'female', 'balanced'):
        jobs = [j for j in result.job_results if j.classification == classification]
        if not jobs:
            continue
        fig.add_trace(go.Scatter(
            x=[j.points for j in jobs],
            y=[j.pay for j in jobs],
            text=[f"#{j.job_number} {j.title}" for j in jobs],
            mode='markers',
            name=CLASS_LABELS[classification],
            marker=dict(size=10, color=CLASS_COLORS[classification]),
            hovertemplate="<b>%{text}</b><br>Points: %{x}<br>Pay: $%{y:,.0f}<extra></extra>"
        ))

    if result.pay_line is not None and result.job_results:
        points = [j.points for j in result.job_results]
        xs = np.linspace(min(points), max(points), 50)
        fig.add_trace(go.Scatter(
            x=xs,
            y=result.pay_line.predict(xs),
            mode='lines',
            name='Predicted Pay',
            line=dict(color='#C0392B', dash='dash'),
            hoverinfo='skip'
        ))

    fig.update_layout(
        xaxis_title="Job Evaluation Points",
        yaxis_title="Maximum Monthly Pay",
        yaxis_tickprefix="$",
        margin={"r": 0, "t": 30, "l": 0, "b": 0},
        height=450,
        legend_title="Class Type"
    )
    return fig


def create_status_summary_chart(summary):
    """Bar chart of report counts by case status"""
    fig = px.bar(
        x=[row['case_status'] for row in summary],
        y=[row['reports'] for row in summary],
        color=[row['case_status'] for row in summary],
        color_discrete_map=STATUS_COLORS,
        labels={'x': 'Case Status', 'y': 'Reports'},
    )
    fig.update_layout(showlegend=False, margin={"r": 0, "t": 30, "l": 0, "b": 0}, height=350)
    return fig
