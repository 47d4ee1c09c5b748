"""
Unit tests for the report_export module.
"""

import json
from datetime import datetime, timezone

import pytest

from analytics.cognitive_insights.pipeline import run_analysis
from analytics.cognitive_insights.report_export import (
    build_analysis_report,
    build_export_rows,
    class_comparison,
    export_students_csv,
    export_students_html_table,
    export_students_json,
    filter_students,
    general_recommendations,
    render_html_report,
    student_recommendations,
    write_exports,
)
from analytics.cognitive_insights.schemas import records_to_frame


@pytest.fixture
def class_df(student):
    return records_to_frame([
        student(1, 0.9, 95, 60, name="Cleo", class_name="A"),
        student(2, 0.3, 45, 20, name="Abe", class_name="B"),
        student(3, 0.65, 72, 35, name="Bea", class_name="A"),
        student(4, 0.45, 58, 25, name="<Dan>", class_name="B"),
    ])


def test_filter_by_class_and_sort(class_df):
    result = filter_students(class_df, classes=["A"], sort_by="assessment_score", ascending=False)

    assert result["student_id"].tolist() == [1, 3]


def test_filter_by_level_and_score(class_df):
    result = filter_students(class_df, performance_levels=["Average", "Needs Improvement"], min_score=50)

    assert result["name"].tolist() == ["<Dan>"]


def test_filter_default_sorts_by_name(class_df):
    assert filter_students(class_df)["name"].tolist() == ["<Dan>", "Abe", "Bea", "Cleo"]


def test_filter_rejects_unknown_inputs(class_df):
    with pytest.raises(ValueError):
        filter_students(class_df, sort_by="height")
    with pytest.raises(ValueError):
        filter_students(class_df, performance_levels=["Stellar"])


def test_export_rows_format_skills(class_df):
    rows = build_export_rows(class_df.head(1), ["name", "comprehension", "performance_level", "overall_cognitive"])

    assert rows == [{
        "name": "Cleo",
        "comprehension": "90.0%",
        "performance_level": "Excellent",
        "overall_cognitive": "90.0%",
    }]


def test_export_csv(class_df, tmp_path):
    path = tmp_path / "out" / "students.csv"

    text = export_students_csv(class_df, fields=["student_id", "name", "attention"], path=path)

    lines = text.strip().split("\n")
    assert lines[0] == "Student ID,Name,Attention"
    assert lines[1] == "1,Cleo,90.0%"
    assert path.read_text(encoding="utf-8") == text


def test_export_json_metadata(class_df):
    document = json.loads(export_students_json(class_df, filters={"classes": ["A"]}))

    assert document["metadata"]["totalRecords"] == 4
    assert document["metadata"]["filters"] == {"classes": ["A"]}
    assert document["data"][0]["student_id"] == 1


def test_export_html_table_escapes(class_df):
    text = export_students_html_table(class_df, fields=["name"])

    assert "&lt;Dan&gt;" in text
    assert "<th>Name</th>" in text


def test_unknown_export_field(class_df):
    with pytest.raises(ValueError):
        build_export_rows(class_df, ["shoe_size"])


def test_student_recommendations(student):
    weak = student(1, 0.3, 40, 10)
    strong = student(2, 0.9, 95, 60)

    assert len(student_recommendations(weak)) == 4
    assert student_recommendations(weak)[0].startswith("Consider implementing attention-building")
    assert student_recommendations(strong) == []


def test_class_comparison(class_df):
    comparison = class_comparison(class_df)

    assert [row["class"] for row in comparison] == ["A", "B"]
    assert comparison[0]["student_count"] == 2
    assert comparison[0]["average_score"] == pytest.approx(83.5)
    assert comparison[0]["average_cognitive"] == pytest.approx(0.775)


def test_general_recommendations(class_df):
    recommendations = general_recommendations(class_df)

    assert recommendations[0].startswith("Consider implementing differentiated instruction")
    assert len(recommendations) == 3


def test_html_report(class_df, config):
    result = run_analysis(class_df, config=config)
    report = build_analysis_report(
        result, class_df, title="Term 1", generated_at=datetime(2024, 1, 15, tzinfo=timezone.utc)
    )

    html_text = render_html_report(report)

    assert report["metadata"]["student_count"] == 4
    assert "<title>Term 1</title>" in html_text
    assert "2024-01-15" in html_text
    assert "&lt;Dan&gt;" in html_text
    assert "Machine Learning Insights" in html_text


def test_html_report_without_ml(student, config):
    df = records_to_frame([student(1, 0.5, 70, 30)])
    result = run_analysis(df, config=config)

    html_text = render_html_report(build_analysis_report(result, df))

    assert "Predictive Model" not in html_text
    assert "at least 3 students" in html_text


def test_write_exports(class_df, config, tmp_path):
    result = run_analysis(class_df, config=config)

    written = write_exports(result, class_df, tmp_path, stem="run")

    assert sorted(p.name for p in written) == ["run.csv", "run_report.html", "run_report.json"]
    report = json.loads((tmp_path / "run_report.json").read_text(encoding="utf-8"))
    assert report["analysis"]["model"] is not None


def test_write_exports_rejects_unknown_format(class_df, config, tmp_path):
    result = run_analysis(class_df, config=config)

    with pytest.raises(ValueError):
        write_exports(result, class_df, tmp_path, formats=["pdf"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
