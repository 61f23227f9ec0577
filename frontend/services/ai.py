"""AI accuracy dashboard: /api/ai plus the derived trends, report and CSV export."""
import csv
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from backend.core.schema import (
    AIAccuracyMetrics,
    AIDashboardData,
    AIMetricsConfig,
    AITrends,
    CommonMistake,
    ImprovementReport,
    SystemsValidationStats,
)
from .api import ApiClient, ApiError, parse

logger = logging.getLogger(__name__)

BASE = "/api/ai"

CSV_HEADERS = [
    "Fecha Análisis",
    "Período (días)",
    "Total Clasificaciones",
    "Total Correcciones",
    "Precisión (%)",
    "Tendencia",
    "Sistemas Problemáticos",
]


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _pct(value: float) -> str:
    # Full precision, without a trailing ".0" on whole numbers
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def calculate_trends(metrics: AIAccuracyMetrics, stats: SystemsValidationStats | None = None) -> AITrends:
    """Classify the current accuracy; there is no history to compare against yet."""
    trend = "insufficient_data"
    if metrics.total_classifications > 50:
        if metrics.accuracy_percentage >= 90:
            trend = "stable"
        elif metrics.accuracy_percentage >= 80:
            trend = "improving"
        else:
            trend = "declining"
    avg = round_half_up(metrics.total_classifications / metrics.period_days) if metrics.period_days else 0
    return AITrends(
        accuracy_trend=trend,
        total_corrections_last_week=metrics.total_corrections,
        avg_daily_classifications=avg,
    )


def build_improvement_report(
    metrics: AIAccuracyMetrics,
    stats: SystemsValidationStats,
    config: AIMetricsConfig | None = None,
) -> ImprovementReport:
    config = config or AIMetricsConfig()
    critical: List[str] = []
    recommendations: List[str] = []
    systems_to_review: List[str] = []

    if metrics.accuracy_percentage < config.accuracy_threshold:
        critical.append(f"Precisión baja: {_pct(metrics.accuracy_percentage)}%")
        recommendations.append("Revisar y actualizar el business context")

    problematic = [s for s in stats.most_problematic_systems if s.error_percentage > config.error_threshold]
    if problematic:
        critical.append(f"{len(problematic)} sistemas con alta tasa de error")
        systems_to_review.extend(s.system_name for s in problematic)
        recommendations.append("Revisar nomenclatura de sistemas problemáticos")

    frequent = [m for m in metrics.common_mistakes if m.frequency > 5]
    if len(frequent) > 3:
        critical.append(f"{len(frequent)} errores muy frecuentes detectados")
        recommendations.append("Actualizar catálogo de sistemas para incluir variaciones comunes")

    if critical:
        summary = f"Se detectaron {len(critical)} problemas que requieren atención"
    else:
        summary = "El sistema de IA está funcionando dentro de parámetros normales"

    return ImprovementReport(
        summary=summary,
        critical_issues=critical,
        recommendations=recommendations + list(stats.improvement_suggestions),
        systems_to_review=systems_to_review,
    )


def convert_metrics_to_csv(data: AIDashboardData) -> str:
    metrics = data.accuracy_metrics
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerow(
        [
            metrics.analysis_date.split("T")[0],
            metrics.period_days,
            metrics.total_classifications,
            metrics.total_corrections,
            _pct(metrics.accuracy_percentage),
            data.trends.accuracy_trend,
            len(data.validation_stats.most_problematic_systems),
        ]
    )
    if metrics.common_mistakes:
        writer.writerow([])
        writer.writerow(["Errores Frecuentes:"])
        writer.writerow(["Sistema Incorrecto", "Sistema Correcto", "Frecuencia"])
        quoted = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_NONNUMERIC)
        for mistake in metrics.common_mistakes:
            quoted.writerow([mistake.wrong, mistake.correct, mistake.frequency])
    return buffer.getvalue().rstrip("\n")


def validate_metrics_config(config: AIMetricsConfig) -> List[str]:
    """Return the list of problems; empty when the config is usable."""
    errors: List[str] = []
    if not 1 <= config.days_back <= 90:
        errors.append("El período debe estar entre 1 y 90 días")
    if not 5 <= config.refresh_interval_minutes <= 1440:
        errors.append("El intervalo de actualización debe estar entre 5 minutos y 24 horas")
    if not 50 <= config.accuracy_threshold <= 100:
        errors.append("El umbral de precisión debe estar entre 50% y 100%")
    if not 0 <= config.error_threshold <= 50:
        errors.append("El umbral de errores debe estar entre 0% y 50%")
    return errors


class AIService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_accuracy_metrics(self, days_back: int = 7) -> AIAccuracyMetrics:
        data = self.client.get(f"{BASE}/accuracy-metrics", params={"days_back": days_back})
        return parse(AIAccuracyMetrics, data or {})

    def get_systems_validation_stats(self) -> SystemsValidationStats:
        return parse(SystemsValidationStats, self.client.get(f"{BASE}/systems-validation-stats") or {})

    def _fetch_both(self, days_back: int):
        with ThreadPoolExecutor(max_workers=2) as executor:
            metrics_future = executor.submit(self.get_accuracy_metrics, days_back)
            stats_future = executor.submit(self.get_systems_validation_stats)
            return metrics_future.result(), stats_future.result()

    def get_dashboard_data(self, days_back: int = 7) -> AIDashboardData:
        try:
            metrics, stats = self._fetch_both(days_back)
        except ApiError as e:
            raise ApiError(f"Error obteniendo datos del dashboard: {e.message}", e.status_code)
        return AIDashboardData(
            accuracy_metrics=metrics,
            validation_stats=stats,
            trends=calculate_trends(metrics, stats),
        )

    def get_common_mistakes(self, days_back: int = 30) -> List[CommonMistake]:
        return self.get_accuracy_metrics(days_back).common_mistakes

    def get_improvement_report(self, days_back: int = 30, config: Optional[AIMetricsConfig] = None) -> ImprovementReport:
        try:
            metrics, stats = self._fetch_both(days_back)
        except ApiError as e:
            raise ApiError(f"Error generando reporte de mejoras: {e.message}", e.status_code)
        return build_improvement_report(metrics, stats, config)

    def export_metrics_csv(self, days_back: int = 30) -> bytes:
        try:
            data = self.get_dashboard_data(days_back)
        except ApiError as e:
            raise ApiError(f"Error exportando métricas: {e.message}", e.status_code)
        logger.info("Exported AI metrics for %s days", days_back)
        return convert_metrics_to_csv(data).encode("utf-8")
