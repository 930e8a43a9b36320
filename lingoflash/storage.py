from __future__ import annotations

from pathlib import Path
import json

from .models import AnalysisReport, Result


def save_results(path: Path, results: list[Result]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.to_dict() for r in results]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    return path


def load_results(path: Path) -> list[Result]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a result list")
    if not all(isinstance(item, dict) for item in data):
        raise ValueError(f"{path} contains entries that are not result objects")
    return [Result.from_dict(item) for item in data]


def save_report(path: Path, report: AnalysisReport) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)
    return path


def load_report(path: Path) -> AnalysisReport:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return AnalysisReport.from_dict(data)
