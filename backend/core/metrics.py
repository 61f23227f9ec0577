"""AI accuracy aggregation for the development backend.

Turns stored classification records (predicted system plus an optional
operator correction) into the accuracy and validation payloads served under
/api/ai.
"""
from typing import Dict, List, Optional, Any
from datetime import datetime, timedelta, timezone
import pandas as pd

from .schema import (
    AIAccuracyMetrics,
    CommonMistake,
    ProblematicSystem,
    SystemsValidationStats,
    ValidationSummary,
)


def _window(records: List[Dict[str, Any]], days_back: int, now: Optional[datetime]) -> pd.DataFrame:
    df = pd.DataFrame(records, columns=["timestamp", "predicted_system", "corrected_system"])
    if df.empty:
        return df
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days_back)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df[df["timestamp"] >= pd.Timestamp(since)]


def compute_accuracy_metrics(records: List[Dict[str, Any]], days_back: int = 7, now: Optional[datetime] = None) -> AIAccuracyMetrics:
    df = _window(records, days_back, now)
    analysis_date = (now or datetime.now(timezone.utc)).isoformat()
    total = int(len(df))
    if total == 0:
        return AIAccuracyMetrics(period_days=days_back, analysis_date=analysis_date)

    corrected = df[df["corrected_system"].notna()]
    n_corrections = int(len(corrected))
    accuracy = round((total - n_corrections) / total * 100, 2)

    by_system = corrected["predicted_system"].value_counts().head(5)
    problematic = [(str(name), int(count)) for name, count in by_system.items()]

    pairs = (
        corrected.groupby(["predicted_system", "corrected_system"]).size()
        .sort_values(ascending=False)
        .head(10)
    )
    mistakes = [
        CommonMistake(wrong=str(wrong), correct=str(correct), frequency=int(freq))
        for (wrong, correct), freq in pairs.items()
    ]

    recommendations: List[str] = []
    if accuracy < 80:
        recommendations.append("Revisar las reglas de negocio con más correcciones")
    for name, _count in problematic[:2]:
        recommendations.append(f"Revisar alias y palabras clave del sistema '{name}'")

    return AIAccuracyMetrics(
        total_classifications=total,
        total_corrections=n_corrections,
        accuracy_percentage=accuracy,
        classifications_with_errors=n_corrections,
        most_problematic_systems=problematic,
        period_days=days_back,
        analysis_date=analysis_date,
        common_mistakes=mistakes,
        recommendations=recommendations,
    )


def compute_validation_stats(records: List[Dict[str, Any]], days_back: int = 30, now: Optional[datetime] = None) -> SystemsValidationStats:
    df = _window(records, days_back, now)
    total = int(len(df))
    if total == 0:
        return SystemsValidationStats(validation_summary=ValidationSummary(period_days=days_back))

    df = df.assign(has_error=df["corrected_system"].notna())
    n_corrections = int(df["has_error"].sum())
    summary = ValidationSummary(
        period_days=days_back,
        total_validations=total,
        validations_with_corrections=n_corrections,
        success_rate_percentage=round((total - n_corrections) / total * 100, 2),
    )

    grouped = df.groupby("predicted_system")["has_error"].agg(["sum", "count"])
    grouped = grouped[grouped["sum"] > 0].sort_values("sum", ascending=False)
    systems = [
        ProblematicSystem(
            system_name=str(name),
            error_count=int(row["sum"]),
            error_percentage=round(float(row["sum"]) / float(row["count"]) * 100, 2),
        )
        for name, row in grouped.iterrows()
    ]
    suggestions = [
        f"Añadir variaciones del nombre '{s.system_name}' al catálogo de sistemas"
        for s in systems
        if s.error_percentage > 10
    ]
    return SystemsValidationStats(
        validation_summary=summary,
        most_problematic_systems=systems,
        improvement_suggestions=suggestions,
    )
