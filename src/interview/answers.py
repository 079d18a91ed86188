"""Loading exported interview answers from disk."""

from __future__ import annotations

import json
from pathlib import Path

import yaml


def load_answers(path: Path | str) -> dict[str, str]:
    """Load an answers mapping from YAML or JSON.

    Values are coerced to strings; nested structures are rejected.
    """
    answers_path = Path(path)
    if not answers_path.exists():
        raise FileNotFoundError(f"Answers file not found: {answers_path}")

    suffix = answers_path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = _load_yaml(answers_path)
    else:
        data = _load_json(answers_path)

    if not isinstance(data, dict):
        raise ValueError(f"Answers must be a mapping/dict: {answers_path}")

    answers: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise ValueError(f"Answer {key!r} must be a scalar value: {answers_path}")
        answers[str(key)] = "" if value is None else str(value)
    return answers


def _load_yaml(path: Path) -> object:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML answers: {path}") from e
    return {} if data is None else data


def _load_json(path: Path) -> object:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON answers: {path}") from e
