import pytest

from backend.core.schema import (
    AIAccuracyMetrics,
    AIDashboardData,
    AIMetricsConfig,
    CommonMistake,
    ProblematicSystem,
    SystemsValidationStats,
)
from frontend.services.ai import (
    AIService,
    build_improvement_report,
    calculate_trends,
    convert_metrics_to_csv,
    round_half_up,
    validate_metrics_config,
)
from frontend.services.api import ApiClient, ApiError
from conftest import FakeResponse, FakeSession


def _metrics(**kw):
    base = dict(total_classifications=100, total_corrections=5, accuracy_percentage=95.0, period_days=7,
                analysis_date="2024-05-31T10:00:00")
    base.update(kw)
    return AIAccuracyMetrics(**base)


@pytest.mark.parametrize(
    "total, accuracy, expected",
    [
        (50, 99.0, "insufficient_data"),
        (51, 90.0, "stable"),
        (51, 89.9, "improving"),
        (100, 80.0, "improving"),
        (100, 79.9, "declining"),
    ],
)
def test_trend_thresholds(total, accuracy, expected):
    trends = calculate_trends(_metrics(total_classifications=total, accuracy_percentage=accuracy))
    assert trends.accuracy_trend == expected


def test_trend_average_and_corrections():
    trends = calculate_trends(_metrics(total_classifications=100, total_corrections=12, period_days=7))
    assert trends.avg_daily_classifications == 14
    assert trends.total_corrections_last_week == 12
    assert calculate_trends(_metrics(total_classifications=10, period_days=0)).avg_daily_classifications == 0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4) == 2


def test_report_without_issues():
    report = build_improvement_report(_metrics(), SystemsValidationStats())
    assert report.critical_issues == []
    assert report.summary == "El sistema de IA está funcionando dentro de parámetros normales"


def test_report_flags_accuracy_systems_and_frequent_mistakes():
    metrics = _metrics(
        accuracy_percentage=72.5,
        common_mistakes=[CommonMistake(wrong=f"S{i}", correct="ERP", frequency=6) for i in range(4)],
    )
    stats = SystemsValidationStats(
        most_problematic_systems=[
            ProblematicSystem(system_name="Portal", error_count=5, error_percentage=25.0),
            ProblematicSystem(system_name="Sorter", error_count=1, error_percentage=10.0),
        ],
        improvement_suggestions=["Añadir variaciones"],
    )
    report = build_improvement_report(metrics, stats)
    assert report.critical_issues == [
        "Precisión baja: 72.5%",
        "1 sistemas con alta tasa de error",
        "4 errores muy frecuentes detectados",
    ]
    assert report.systems_to_review == ["Portal"]
    assert report.recommendations[-1] == "Añadir variaciones"
    assert report.summary == "Se detectaron 3 problemas que requieren atención"


def test_report_uses_configured_thresholds():
    config = AIMetricsConfig(accuracy_threshold=99, error_threshold=5)
    stats = SystemsValidationStats(
        most_problematic_systems=[ProblematicSystem(system_name="Sorter", error_count=1, error_percentage=8.0)]
    )
    report = build_improvement_report(_metrics(accuracy_percentage=95.0), stats, config)
    assert report.critical_issues[0] == "Precisión baja: 95%"
    assert report.systems_to_review == ["Sorter"]


def test_csv_layout():
    metrics = _metrics(common_mistakes=[CommonMistake(wrong="Portal", correct="ERP", frequency=3)])
    stats = SystemsValidationStats(
        most_problematic_systems=[ProblematicSystem(system_name="Portal", error_count=3, error_percentage=30.0)]
    )
    data = AIDashboardData(accuracy_metrics=metrics, validation_stats=stats, trends=calculate_trends(metrics))
    lines = convert_metrics_to_csv(data).split("\n")
    assert lines[0].startswith("Fecha Análisis,Período (días)")
    assert lines[1] == "2024-05-31,7,100,5,95,stable,1"
    assert lines[3] == "Errores Frecuentes:"
    assert lines[5] == '"Portal","ERP",3'


def test_csv_without_mistakes_has_two_lines():
    metrics = _metrics()
    data = AIDashboardData(accuracy_metrics=metrics, validation_stats=SystemsValidationStats(),
                           trends=calculate_trends(metrics))
    assert len(convert_metrics_to_csv(data).split("\n")) == 2


def test_config_validation_messages():
    assert validate_metrics_config(AIMetricsConfig()) == []
    errors = validate_metrics_config(
        AIMetricsConfig(days_back=0, refresh_interval_minutes=2, accuracy_threshold=40, error_threshold=60)
    )
    assert errors == [
        "El período debe estar entre 1 y 90 días",
        "El intervalo de actualización debe estar entre 5 minutos y 24 horas",
        "El umbral de precisión debe estar entre 50% y 100%",
        "El umbral de errores debe estar entre 0% y 50%",
    ]


def _routed_session():
    """Answers by path so the concurrent dashboard calls can come in any order."""
    class Routed(FakeSession):
        def request(self, method, url, **kwargs):
            self.calls.append({"method": method, "url": url, **kwargs})
            if url.endswith("/accuracy-metrics"):
                return FakeResponse(200, _metrics().model_dump())
            return FakeResponse(200, {"validation_summary": {"period_days": 30}, "most_problematic_systems": None})
    return Routed()


def test_dashboard_fetches_both_endpoints():
    session = _routed_session()
    data = AIService(ApiClient("http://api.test", session=session)).get_dashboard_data(30)
    urls = sorted(c["url"] for c in session.calls)
    assert urls == ["http://api.test/api/ai/accuracy-metrics", "http://api.test/api/ai/systems-validation-stats"]
    metrics_call = [c for c in session.calls if c["url"].endswith("accuracy-metrics")][0]
    assert metrics_call["params"] == {"days_back": 30}
    assert data.trends.accuracy_trend == "stable"
    assert data.validation_stats.most_problematic_systems == []


def test_dashboard_failure_is_wrapped():
    session = FakeSession(default=FakeResponse(500, {"detail": "boom"}))
    with pytest.raises(ApiError) as exc:
        AIService(ApiClient("http://api.test", session=session)).get_dashboard_data()
    assert exc.value.message == "Error obteniendo datos del dashboard: boom"


def test_common_mistakes_and_export():
    session = _routed_session()
    service = AIService(ApiClient("http://api.test", session=session))
    assert service.get_common_mistakes() == []
    csv_bytes = service.export_metrics_csv(7)
    assert csv_bytes.decode("utf-8").startswith("Fecha Análisis")
    report = service.get_improvement_report(30)
    assert report.critical_issues == []


def test_percentages_keep_full_precision():
    metrics = _metrics(accuracy_percentage=72.123456)
    report = build_improvement_report(metrics, SystemsValidationStats())
    assert report.critical_issues[0] == "Precisión baja: 72.123456%"
    data = AIDashboardData(accuracy_metrics=metrics, validation_stats=SystemsValidationStats(),
                           trends=calculate_trends(metrics))
    assert convert_metrics_to_csv(data).split("\n")[1] == "2024-05-31,7,100,5,72.123456,declining,0"


def test_export_failure_is_wrapped():
    session = FakeSession(default=FakeResponse(500, {"detail": "boom"}))
    with pytest.raises(ApiError) as exc:
        AIService(ApiClient("http://api.test", session=session)).export_metrics_csv(7)
    assert exc.value.message == "Error exportando métricas: Error obteniendo datos del dashboard: boom"


def test_malformed_metrics_become_api_error():
    session = FakeSession(default=FakeResponse(200, {"total_classifications": "many"}))
    with pytest.raises(ApiError) as exc:
        AIService(ApiClient("http://api.test", session=session)).get_dashboard_data(7)
    assert exc.value.message == "Error obteniendo datos del dashboard: Respuesta no válida del servidor"
