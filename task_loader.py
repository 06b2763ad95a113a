"""Filesystem-backed loader for data-driven test cases."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

import yaml

from exceptions import TaskLoadError, TaskValidationError
from test_types import TestCase


def _as_set(value: Any) -> Set[str]:
    """Convert value to set of strings."""
    if value is None:
        return set()
    if isinstance(value, (list, set, tuple)):
        return {str(item) for item in value}
    if isinstance(value, str):
        return {value}
    raise TaskLoadError(f"Expected string, list, or set, got {type(value).__name__}")


def _parse_case(data: Dict[str, Any], fallback_id: str) -> List[TestCase]:
    """Parse a dictionary into one TestCase, or one per ``parameters`` row."""
    if not isinstance(data, dict):
        raise TaskLoadError("Test case payload must be a mapping")

    case_id = str(data.get("id") or fallback_id)

    base_data = data.get("data") or {}
    if not isinstance(base_data, dict):
        raise TaskValidationError("data must be a mapping", task_id=case_id, field="data")

    parameters = data.get("parameters")
    if parameters is not None and (not isinstance(parameters, list) or not parameters):
        raise TaskValidationError(
            "parameters must be a non-empty list of mappings", task_id=case_id, field="parameters"
        )

    tags = _as_set(data.get("tags"))
    skip = bool(data.get("skip", False))
    skip_reason = data.get("skip_reason")

    max_attempts = data.get("max_attempts")
    if max_attempts is not None:
        max_attempts = max(1, int(max_attempts))

    priority = int(data.get("priority", 5))
    if priority < 1:
        priority = 1
    elif priority > 10:
        priority = 10

    def build(row_id: str, row_data: Dict[str, Any]) -> TestCase:
        return TestCase(
            id=row_id,
            description=data.get("description"),
            data=row_data,
            start_url=data.get("start_url"),
            tags=set(tags),
            skip=skip,
            skip_reason=skip_reason,
            max_attempts=max_attempts,
            priority=priority,
            owner=data.get("owner"),
        )

    if parameters is None:
        return [build(case_id, dict(base_data))]

    cases = []
    for index, row in enumerate(parameters):
        if not isinstance(row, dict):
            raise TaskValidationError(
                f"parameters[{index}] must be a mapping", task_id=case_id, field="parameters"
            )
        cases.append(build(f"{case_id}[{index}]", {**base_data, **row}))
    return cases


def load_case_file(path: Path) -> List[TestCase]:
    """Load every test case defined in a YAML or JSON file."""
    try:
        raw = path.read_text(encoding="utf-8")
        if path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
        return _parse_case(data, fallback_id=path.stem)
    except (TaskLoadError, TaskValidationError):
        raise
    except Exception as exc:
        raise TaskLoadError(f"Failed to load test data file: {exc}", file_path=str(path)) from exc


def discover_cases(
    data_dir: Path,
    only_ids: Optional[Iterable[str]] = None,
    include_tags: Optional[Set[str]] = None,
    exclude_tags: Optional[Set[str]] = None,
    include_skipped: bool = True,
    sort_by_priority: bool = False,
) -> List[TestCase]:
    """
    Discover and load test cases from a directory.

    Args:
        data_dir: Directory containing test data YAML/JSON files
        only_ids: If provided, only load cases with these IDs (a parameterized
            case matches by its own id or by the file-level id)
        include_tags: If provided, only include cases with at least one of these tags
        exclude_tags: If provided, exclude cases with any of these tags
        include_skipped: If False, drop cases marked skip=true instead of reporting them
        sort_by_priority: If True, sort cases by priority (1=highest first)

    Returns:
        List of TestCase objects

    Raises:
        TaskLoadError: Missing directory, unreadable file or unknown requested id
        TaskValidationError: Invalid case, or two cases sharing an id
    """
    data_dir = data_dir.expanduser().resolve()

    if not data_dir.exists():
        raise TaskLoadError(f"Test data directory does not exist: {data_dir}")

    id_filter = {tid for tid in (only_ids or [])}
    found: List[TestCase] = []
    matched_ids: Set[str] = set()

    yaml_files = sorted(data_dir.glob("*.yaml")) + sorted(data_dir.glob("*.yml"))
    json_files = sorted(data_dir.glob("*.json"))

    seen: Dict[str, Path] = {}

    for path in yaml_files + json_files:
        for case in load_case_file(path):
            if case.id in seen:
                raise TaskValidationError(
                    f"Duplicate test case id {case.id!r} in {path.name} (already defined in {seen[case.id].name})",
                    task_id=case.id,
                    field="id",
                )
            seen[case.id] = path

            if id_filter:
                group_id = case.id.split("[", 1)[0]
                hit = id_filter & {case.id, group_id}
                if not hit:
                    continue
                matched_ids |= hit

            if case.skip and not include_skipped:
                continue

            if not case.matches_filter(include_tags, exclude_tags):
                continue

            found.append(case)

    if id_filter:
        missing = id_filter - matched_ids
        if missing:
            raise TaskLoadError(f"Test cases not found: {', '.join(sorted(missing))}")

    if sort_by_priority:
        found.sort(key=lambda t: t.priority)

    return found


def validate_case(data: Dict[str, Any]) -> List[str]:
    """
    Validate test case data without loading.

    Returns list of validation errors (empty if valid).
    """
    errors = []

    if not isinstance(data, dict):
        return ["Test case must be a dictionary/mapping"]

    case_data = data.get("data")
    if case_data is not None and not isinstance(case_data, dict):
        errors.append("data must be a dictionary")

    parameters = data.get("parameters")
    if parameters is not None:
        if not isinstance(parameters, list) or not parameters:
            errors.append("parameters must be a non-empty list")
        elif not all(isinstance(row, dict) for row in parameters):
            errors.append("every parameters entry must be a dictionary")

    tags = data.get("tags")
    if tags is not None and not isinstance(tags, (str, list, set)):
        errors.append("tags must be a string or list")

    max_attempts = data.get("max_attempts")
    if max_attempts is not None:
        try:
            val = int(max_attempts)
            if val < 1:
                errors.append("max_attempts must be at least 1")
        except (ValueError, TypeError):
            errors.append("max_attempts must be an integer")

    priority = data.get("priority")
    if priority is not None:
        try:
            val = int(priority)
            if val < 1 or val > 10:
                errors.append("priority must be between 1 and 10")
        except (ValueError, TypeError):
            errors.append("priority must be an integer")

    return errors
