"""AI metrics view: classification accuracy, frequent mistakes and the improvement report."""
from datetime import datetime

import streamlit as st

from backend.core.schema import AIMetricsConfig
from frontend.components.ai_charts import (
    render_common_mistakes_chart,
    render_metric_cards,
    render_problematic_systems_chart,
)
from frontend.services.ai import AIService, build_improvement_report, convert_metrics_to_csv, validate_metrics_config
from frontend.services.api import ApiError
from frontend.store import AdminStore, Toaster

PERIODS = {1: "Último día", 7: "Última semana", 30: "Último mes", 90: "Últimos 90 días"}


def _refresh(store: AdminStore, service: AIService, toaster: Toaster):
    store.dashboard_loading = True
    try:
        with st.spinner("Cargando métricas de IA..."):
            store.dashboard = service.get_dashboard_data(store.ai_days_back)
        store.dashboard_error = None
        store.last_refresh = datetime.now()
    except ApiError as e:
        store.dashboard_error = e.message
        toaster.error("Error al cargar las métricas", e.message)
    finally:
        store.dashboard_loading = False


def _render_config(store: AdminStore, toaster: Toaster):
    cfg = store.ai_config
    with st.expander("⚙️ Configuración de métricas"):
        with st.form("ai-config"):
            col1, col2 = st.columns(2)
            days = col1.number_input("Período por defecto (días)", value=cfg.days_back, step=1)
            refresh = col2.number_input("Actualización automática (min)", value=cfg.refresh_interval_minutes, step=5)
            accuracy = col1.number_input("Umbral de precisión (%)", value=float(cfg.accuracy_threshold), step=1.0)
            error = col2.number_input("Umbral de errores (%)", value=float(cfg.error_threshold), step=1.0)
            submitted = st.form_submit_button("Guardar configuración")
        if submitted:
            candidate = AIMetricsConfig(
                days_back=int(days),
                refresh_interval_minutes=int(refresh),
                accuracy_threshold=accuracy,
                error_threshold=error,
            )
            errors = validate_metrics_config(candidate)
            for message in errors:
                st.error(message)
            if not errors:
                store.ai_config = candidate
                if candidate.days_back in PERIODS:
                    store.ai_days_back = candidate.days_back
                toaster.success("Configuración guardada")


def render_ai_metrics_view(store: AdminStore, service: AIService):
    toaster = Toaster(store)

    col1, col2, col3 = st.columns([0.5, 0.25, 0.25])
    options = list(PERIODS)
    days = col1.selectbox(
        "Período",
        options=options,
        index=options.index(store.ai_days_back) if store.ai_days_back in options else 1,
        format_func=lambda d: PERIODS[d],
    )
    force = col2.button("🔄 Actualizar", use_container_width=True)
    if days != store.ai_days_back:
        store.ai_days_back = days
        force = True
    if force or store.dashboard_due():
        _refresh(store, service, toaster)

    if store.dashboard_error and store.dashboard is None:
        st.error(f"❌ {store.dashboard_error}")
        if st.button("Reintentar", key="retry-ai"):
            store.dashboard_error = None
            st.rerun()
        return
    data = store.dashboard
    if data is None:
        return

    col3.download_button(
        "⬇️ Exportar CSV",
        data=convert_metrics_to_csv(data).encode("utf-8"),
        file_name=f"metricas-ia-{store.ai_days_back}d.csv",
        mime="text/csv",
        use_container_width=True,
    )
    if store.last_refresh:
        st.caption(f"Última actualización: {store.last_refresh:%d/%m/%Y %H:%M:%S}")

    cfg = store.ai_config
    render_metric_cards(data, cfg.accuracy_threshold)

    left, right = st.columns(2)
    with left:
        render_common_mistakes_chart(data.accuracy_metrics.common_mistakes)
    with right:
        render_problematic_systems_chart(data.validation_stats.most_problematic_systems, cfg.error_threshold)

    if data.accuracy_metrics.recommendations:
        st.subheader("Recomendaciones")
        for rec in data.accuracy_metrics.recommendations:
            st.markdown(f"- {rec}")

    report = build_improvement_report(data.accuracy_metrics, data.validation_stats, cfg)
    with st.expander("📝 Reporte de mejoras", expanded=bool(report.critical_issues)):
        if report.critical_issues:
            st.warning(report.summary)
            for issue in report.critical_issues:
                st.markdown(f"- 🔴 {issue}")
        else:
            st.success(report.summary)
        if report.recommendations:
            st.markdown("**Acciones sugeridas**")
            for rec in report.recommendations:
                st.markdown(f"- {rec}")
        if report.systems_to_review:
            st.markdown(f"**Sistemas a revisar:** {', '.join(report.systems_to_review)}")

    _render_config(store, toaster)
