"""Streamlit component: AI dashboard charts.

- Metric cards for accuracy, classifications, corrections and daily average
- Most frequent misclassifications (horizontal bar)
- Systems with the highest error rate (bar)
"""
import streamlit as st
import pandas as pd
import plotly.express as px

from backend.core.schema import AIDashboardData, CommonMistake, ProblematicSystem

TREND_LABELS = {
    "improving": "📈 Mejorando",
    "stable": "➖ Estable",
    "declining": "📉 Empeorando",
    "insufficient_data": "Datos insuficientes",
}


def render_metric_cards(data: AIDashboardData, accuracy_threshold: float):
    metrics = data.accuracy_metrics
    col1, col2, col3, col4 = st.columns(4)
    col1.metric(
        "Precisión",
        f"{metrics.accuracy_percentage:.1f}%",
        delta=TREND_LABELS[data.trends.accuracy_trend],
        delta_color="off",
    )
    col2.metric("Clasificaciones", metrics.total_classifications)
    col3.metric("Correcciones", metrics.total_corrections)
    col4.metric("Media diaria", data.trends.avg_daily_classifications)
    if metrics.total_classifications and metrics.accuracy_percentage < accuracy_threshold:
        st.warning(f"La precisión está por debajo del umbral configurado ({accuracy_threshold:g}%).")


def render_common_mistakes_chart(mistakes: list[CommonMistake]):
    st.subheader("Errores frecuentes")
    if not mistakes:
        st.info("No se registraron correcciones en el período.")
        return
    df = pd.DataFrame(
        [{"Error": f"{m.wrong} → {m.correct}", "Frecuencia": m.frequency} for m in mistakes]
    )
    try:
        fig = px.bar(df, x="Frecuencia", y="Error", orientation="h", text="Frecuencia")
        fig.update_layout(yaxis={"categoryorder": "total ascending"}, height=80 + 40 * len(df))
        st.plotly_chart(fig, config={"responsive": True, "displayModeBar": False}, use_container_width=True)
    except Exception:
        st.dataframe(df)


def render_problematic_systems_chart(systems: list[ProblematicSystem], error_threshold: float):
    st.subheader("Sistemas problemáticos")
    if not systems:
        st.info("Ningún sistema acumula errores de validación.")
        return
    df = pd.DataFrame(
        [
            {
                "Sistema": s.system_name,
                "Errores": s.error_count,
                "Error (%)": s.error_percentage,
                "Revisar": s.error_percentage > error_threshold,
            }
            for s in systems
        ]
    )
    try:
        fig = px.bar(df, x="Sistema", y="Error (%)", color="Revisar", text="Errores",
                     color_discrete_map={True: "#d62728", False: "#1f77b4"})
        fig.add_hline(y=error_threshold, line_dash="dash", annotation_text="Umbral")
        st.plotly_chart(fig, config={"responsive": True, "displayModeBar": False}, use_container_width=True)
    except Exception:
        st.dataframe(df)
