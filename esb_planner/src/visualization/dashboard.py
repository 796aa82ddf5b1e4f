# src/visualization/dashboard.py
"""
Interactive Plotly dashboard from the simulation log.
Shows battery, route progress and energy use over each day of the scenario.
"""

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from esb_planner.src.config.paths import output_path


def create_dashboard(log_csv: str = "simulation_log.csv", output_file: str = "dashboard.html"):
    """
    Generate a multi-panel dashboard, one line per scenario day.
    """
    print("Creating simulation dashboard...")
    df = pd.read_csv(output_path(log_csv))
    df = df.sort_values(['day', 'sim_seconds'])
    df['sim_minutes'] = df['sim_seconds'] / 60

    fig = make_subplots(
        rows=3, cols=1,
        subplot_titles=("Battery (%)", "Route Progress (%)", "Energy Consumed (kWh)"),
        vertical_spacing=0.1
    )

    colors = px.colors.qualitative.Plotly
    for i, (day, day_df) in enumerate(df.groupby('day')):
        color = colors[i % len(colors)]
        label = f"Day {day} ({day_df['weather'].iloc[0]})"

        # Battery
        fig.add_trace(
            go.Scatter(x=day_df['sim_minutes'], y=day_df['battery_percent'],
                       mode='lines', name=label, legendgroup=label, line=dict(color=color)),
            row=1, col=1
        )

        # Progress
        fig.add_trace(
            go.Scatter(x=day_df['sim_minutes'], y=day_df['progress'] * 100,
                       mode='lines', name=label, legendgroup=label, showlegend=False, line=dict(color=color)),
            row=2, col=1
        )

        # Energy
        fig.add_trace(
            go.Scatter(x=day_df['sim_minutes'], y=day_df['energy_consumed_kwh'],
                       mode='lines', name=label, legendgroup=label, showlegend=False, line=dict(color=color)),
            row=3, col=1
        )

        charging = day_df[day_df['status'] == 'charging']
        if not charging.empty:
            fig.add_trace(
                go.Scatter(x=charging['sim_minutes'], y=charging['battery_percent'],
                           mode='markers', name=f"{label} charging", legendgroup=label,
                           marker=dict(color=color, symbol='diamond', size=5)),
                row=1, col=1
            )

    fig.add_hline(y=15, line_dash="dot", line_color="red", row=1, col=1)

    fig.update_layout(height=900, title_text="Electric School Bus Scenario Dashboard", showlegend=True)
    fig.update_xaxes(title_text="Simulated Minutes", row=3, col=1)

    output_path_full = output_path(output_file)
    fig.write_html(str(output_path_full))
    print(f"Dashboard saved to: {output_path_full}")
    return str(output_path_full)
