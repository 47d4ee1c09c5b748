"""
Report and export module for the Cognitive Insights Engine.

Turns datasets and analysis results into CSV, JSON and HTML documents.
Nothing here computes new statistics beyond formatting and the per-student
recommendations shown in printable reports.
"""

import html
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from .correlation_analyzer import PERFORMANCE_LEVELS, average_cognitive, performance_level
from .schemas import RECORD_COLUMNS, SKILL_FEATURES, AnalysisResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

FIELD_LABELS: Dict[str, str] = {
    "student_id": "Student ID",
    "name": "Name",
    "class": "Class",
    "comprehension": "Comprehension",
    "attention": "Attention",
    "focus": "Focus",
    "retention": "Retention",
    "assessment_score": "Assessment Score",
    "engagement_time": "Engagement Time",
    "performance_level": "Performance Level",
    "overall_cognitive": "Overall Cognitive",
}

DEFAULT_EXPORT_FIELDS = list(RECORD_COLUMNS)

EXPORT_FORMATS = ("csv", "json", "html")


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def _write(text: str, path: Optional[PathLike]) -> None:
    if path is None:
        return
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info(f"   ✓ Wrote {path}")


def _check_fields(fields: Sequence[str]) -> List[str]:
    unknown = [field for field in fields if field not in FIELD_LABELS]
    if unknown:
        raise ValueError(f"Unknown export fields: {', '.join(unknown)}")
    return list(fields)


def filter_students(
    df: pd.DataFrame,
    classes: Optional[Iterable[str]] = None,
    performance_levels: Optional[Iterable[str]] = None,
    min_score: float = 0,
    max_score: float = 100,
    sort_by: str = "name",
    ascending: bool = True,
) -> pd.DataFrame:
    """
    Select and order students for export.

    Args:
        df: Student dataset
        classes: Keep only these classes (all when empty or None)
        performance_levels: Keep only these levels (see PERFORMANCE_LEVELS)
        min_score, max_score: Inclusive assessment score range
        sort_by: Record column to sort on
        ascending: Sort direction

    Returns:
        pd.DataFrame: Filtered copy
    """
    if sort_by not in RECORD_COLUMNS:
        raise ValueError(f"Cannot sort by unknown column: {sort_by}")

    filtered = df.copy()

    classes = list(classes or [])
    if classes:
        filtered = filtered[filtered["class"].isin(classes)]

    levels = list(performance_levels or [])
    if levels:
        unknown = [level for level in levels if level not in PERFORMANCE_LEVELS]
        if unknown:
            raise ValueError(f"Unknown performance levels: {', '.join(unknown)}")
        if not filtered.empty:
            filtered = filtered[filtered.apply(performance_level, axis=1).isin(levels)]

    filtered = filtered[
        (filtered["assessment_score"] >= min_score) & (filtered["assessment_score"] <= max_score)
    ]

    return filtered.sort_values(by=sort_by, ascending=ascending, kind="mergesort")


def build_export_rows(df: pd.DataFrame, fields: Optional[Sequence[str]] = None) -> List[Dict]:
    """Format students for export; skills become percentages like "85.0%"."""
    fields = _check_fields(fields or DEFAULT_EXPORT_FIELDS)

    rows = []
    for _, student in df.iterrows():
        row = {}
        for field in fields:
            if field in SKILL_FEATURES:
                row[field] = _percent(float(student[field]))
            elif field == "performance_level":
                row[field] = performance_level(student)
            elif field == "overall_cognitive":
                row[field] = _percent(average_cognitive(student))
            elif field == "student_id":
                row[field] = int(student[field])
            elif field in ("assessment_score", "engagement_time"):
                row[field] = float(student[field])
            else:
                row[field] = str(student[field])
        rows.append(row)
    return rows


def export_students_csv(
    df: pd.DataFrame,
    fields: Optional[Sequence[str]] = None,
    path: Optional[PathLike] = None,
) -> str:
    """Render students as CSV with human-readable headers."""
    fields = _check_fields(fields or DEFAULT_EXPORT_FIELDS)
    table = pd.DataFrame(build_export_rows(df, fields), columns=fields)
    text = table.to_csv(index=False, header=[FIELD_LABELS[f] for f in fields], lineterminator="\n")
    _write(text, path)
    return text


def export_students_json(
    df: pd.DataFrame,
    fields: Optional[Sequence[str]] = None,
    filters: Optional[Dict] = None,
    path: Optional[PathLike] = None,
) -> str:
    """Render students as a JSON document with an export metadata header."""
    fields = _check_fields(fields or DEFAULT_EXPORT_FIELDS)
    rows = build_export_rows(df, fields)
    document = {
        "metadata": {
            "exportDate": datetime.now(timezone.utc).isoformat(),
            "totalRecords": len(rows),
            "filters": filters or {},
            "fields": fields,
        },
        "data": rows,
    }
    text = json.dumps(document, indent=2, ensure_ascii=False)
    _write(text, path)
    return text


def export_students_html_table(
    df: pd.DataFrame,
    fields: Optional[Sequence[str]] = None,
    path: Optional[PathLike] = None,
) -> str:
    """Render students as an HTML table that spreadsheet tools can open."""
    fields = _check_fields(fields or DEFAULT_EXPORT_FIELDS)
    table = pd.DataFrame(build_export_rows(df, fields), columns=fields)
    table.columns = [FIELD_LABELS[f] for f in fields]
    text = "<html><body>\n" + table.to_html(index=False, border=1) + "\n</body></html>\n"
    _write(text, path)
    return text


def student_recommendations(student) -> List[str]:
    """Targeted suggestions for every skill below 0.5."""
    recommendations = []
    if student["attention"] < 0.5:
        recommendations.append(
            "Consider implementing attention-building exercises and shorter task intervals."
        )
    if student["focus"] < 0.5:
        recommendations.append(
            "Recommend focus training activities and distraction-free learning environments."
        )
    if student["retention"] < 0.5:
        recommendations.append(
            "Implement spaced repetition techniques and memory enhancement strategies."
        )
    if student["comprehension"] < 0.5:
        recommendations.append(
            "Provide additional reading comprehension support and scaffolded learning materials."
        )
    return recommendations


def class_comparison(df: pd.DataFrame) -> List[Dict]:
    """Per-class size, mean score and mean cognitive level, in first-appearance order."""
    comparison = []
    for class_name in pd.unique(df["class"]):
        members = df[df["class"] == class_name]
        comparison.append({
            "class": str(class_name),
            "student_count": len(members),
            "average_score": float(members["assessment_score"].mean()),
            "average_cognitive": float(members[list(SKILL_FEATURES)].mean(axis=1).mean()),
        })
    return comparison


def report_observations(df: pd.DataFrame) -> List[str]:
    """Class-level observations for the report overview section."""
    if df.empty:
        return []

    observations = []
    avg_score = df["assessment_score"].mean()
    if avg_score >= 80:
        observations.append("Class shows strong overall performance with high assessment scores.")
    elif avg_score < 60:
        observations.append(
            "Class performance indicates need for additional support and intervention."
        )

    high_attention = int((df["attention"] >= 0.8).sum())
    if high_attention / len(df) > 0.7:
        observations.append("Majority of students demonstrate excellent attention levels.")

    return observations


def general_recommendations(df: pd.DataFrame) -> List[str]:
    recommendations = []
    low_performers = int((df["assessment_score"] < 60).sum())
    if low_performers > len(df) * 0.3:
        recommendations.append(
            "Consider implementing differentiated instruction strategies to support struggling students."
        )
    recommendations.append("Regular cognitive skills assessment can help track student progress over time.")
    recommendations.append("Implement targeted interventions based on individual cognitive profiles.")
    return recommendations


def build_analysis_report(
    result: AnalysisResult,
    df: pd.DataFrame,
    title: str = "Student Performance Report",
    description: str = "Cognitive skills and assessment analysis",
    generated_at: Optional[datetime] = None,
) -> Dict:
    """
    Assemble a JSON-ready report from an analysis pass.

    Returns:
        dict: {
            'metadata': {...},
            'analysis': AnalysisResult.to_dict(),
            'observations': [...],
            'class_comparison': [...],
            'students': [... per-student profile with level and recommendations ...],
            'recommendations': [...]
        }
    """
    generated_at = generated_at or datetime.now(timezone.utc)

    students = []
    for _, student in df.iterrows():
        students.append({
            "student_id": int(student["student_id"]),
            "name": str(student["name"]),
            "class": str(student["class"]),
            **{skill: float(student[skill]) for skill in SKILL_FEATURES},
            "assessment_score": float(student["assessment_score"]),
            "engagement_time": float(student["engagement_time"]),
            "performance_level": performance_level(student),
            "recommendations": student_recommendations(student),
        })

    return {
        "metadata": {
            "title": title,
            "description": description,
            "generated_at": generated_at.isoformat(),
            "student_count": len(df),
        },
        "analysis": result.to_dict(),
        "observations": report_observations(df),
        "class_comparison": class_comparison(df),
        "students": students,
        "recommendations": general_recommendations(df),
    }


def _list_items(items: Iterable[str]) -> str:
    return "".join(f"<li>{html.escape(item)}</li>" for item in items)


def render_html_report(report: Dict) -> str:
    """Render a report from build_analysis_report() as a printable HTML page."""
    meta = report["metadata"]
    analysis = report["analysis"]
    overview = analysis["overview"]
    esc = html.escape

    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset=\"utf-8\">",
        f"<title>{esc(meta['title'])}</title>",
        "<style>body{font-family:Arial,sans-serif;margin:40px}"
        "table{border-collapse:collapse;width:100%}"
        "th,td{border:1px solid #ddd;padding:8px;text-align:left}</style>",
        "</head><body>",
        f"<h1>{esc(meta['title'])}</h1>",
        f"<p>{esc(meta['description'])}</p>",
        f"<p><strong>Generated:</strong> {esc(meta['generated_at'][:10])}</p>",
        f"<p><strong>Students Analyzed:</strong> {meta['student_count']}</p>",
        "<h2>Overview</h2><ul>",
        f"<li>Average Assessment Score: {overview['average_score']:.1f}%</li>",
    ]
    for skill in SKILL_FEATURES:
        parts.append(
            f"<li>Average {skill.capitalize()}: {overview['average_' + skill] * 100:.1f}%</li>"
        )
    parts.append("</ul>")

    if report["observations"]:
        parts.append(f"<h3>Performance Insights</h3><ul>{_list_items(report['observations'])}</ul>")

    if analysis["correlations"]:
        parts.append("<h2>Skill Correlations</h2><table><tr><th>Skill</th><th>Correlation</th></tr>")
        for entry in analysis["correlations"]:
            parts.append(f"<tr><td>{esc(entry['skill'])}</td><td>{entry['correlation']:+.3f}</td></tr>")
        parts.append("</table>")

    if analysis["model"] is not None:
        model = analysis["model"]
        parts.append("<h2>Predictive Model</h2><ul>")
        for name, value in model["coefficients"].items():
            parts.append(f"<li>{esc(name.capitalize())}: {value:+.4f}</li>")
        parts.append(f"<li>R²: {model['r_squared'] * 100:.1f}%</li>")
        parts.append(f"<li>Mean Squared Error: {model['mean_squared_error']:.2f}</li></ul>")
        parts.append(f"<h3>Machine Learning Insights</h3><ul>{_list_items(analysis['insights'])}</ul>")
    elif analysis["ml_skipped_reason"]:
        parts.append(f"<p><em>{esc(analysis['ml_skipped_reason'])}</em></p>")

    parts.append(
        "<h2>Class Comparison</h2><table><tr><th>Class</th><th>Students</th>"
        "<th>Avg Score</th><th>Avg Cognitive</th></tr>"
    )
    for row in report["class_comparison"]:
        parts.append(
            f"<tr><td>{esc(row['class'])}</td><td>{row['student_count']}</td>"
            f"<td>{row['average_score']:.1f}%</td><td>{row['average_cognitive'] * 100:.1f}%</td></tr>"
        )
    parts.append("</table>")

    parts.append("<h2>Individual Student Profiles</h2>")
    for student in report["students"]:
        parts.append(
            f"<div><h3>{esc(student['name'])} ({esc(student['class'])})</h3>"
            f"<p>{esc(student['performance_level'])} · Score {student['assessment_score']:g}% · "
            f"Engagement {student['engagement_time']:g} min</p>"
        )
        if student["recommendations"]:
            parts.append(f"<ul>{_list_items(student['recommendations'])}</ul>")
        parts.append("</div>")

    parts.append(f"<h2>Recommendations</h2><ul>{_list_items(report['recommendations'])}</ul>")
    parts.append("</body></html>")
    return "\n".join(parts)


def write_exports(
    result: AnalysisResult,
    df: pd.DataFrame,
    output_dir: PathLike,
    formats: Sequence[str] = EXPORT_FORMATS,
    stem: Optional[str] = None,
) -> List[Path]:
    """
    Write the student export and analysis report in each requested format.

    Returns:
        List[Path]: Files written
    """
    unknown = [fmt for fmt in formats if fmt not in EXPORT_FORMATS]
    if unknown:
        raise ValueError(f"Unknown export formats: {', '.join(unknown)}")

    logger.info("=" * 80)
    logger.info("WRITING EXPORTS")
    logger.info("=" * 80)

    output_dir = Path(output_dir)
    stem = stem or f"student_performance_{datetime.now(timezone.utc).date().isoformat()}"
    report = build_analysis_report(result, df)
    written = []

    if "csv" in formats:
        path = output_dir / f"{stem}.csv"
        export_students_csv(df, path=path)
        written.append(path)

    if "json" in formats:
        path = output_dir / f"{stem}_report.json"
        _write(json.dumps(report, indent=2, ensure_ascii=False), path)
        written.append(path)

    if "html" in formats:
        path = output_dir / f"{stem}_report.html"
        _write(render_html_report(report), path)
        written.append(path)

    return written
