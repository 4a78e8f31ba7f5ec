"""Label and selector helpers plus template hashing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from runnerfleet.hashing import deep_hash_object, safe_encode_string

LABEL_KEY_RUNNER_TEMPLATE_HASH = "runner-template-hash"
LABEL_KEY_RUNNER_DEPLOYMENT_NAME = "runner-deployment-name"


@dataclass
class LabelSelectorRequirement:
    """A single set-based selector expression."""

    key: str
    operator: str
    values: list[str] | None = None


@dataclass
class LabelSelector:
    """Label query made of exact matches and expressions."""

    match_labels: dict[str, str] | None = None
    match_expressions: list[LabelSelectorRequirement] | None = None


def compute_hash(template: Any) -> str:
    """Return a word-safe hash string of the whole template content."""
    return safe_encode_string(str(deep_hash_object(template)))


def clone_and_add_label(
    labels: dict[str, str] | None, label_key: str, label_value: str
) -> dict[str, str] | None:
    """Return a copy of ``labels`` with one label set; ``labels`` itself if the key is empty."""
    if label_key == "":
        return labels
    new_labels = dict(labels or {})
    new_labels[label_key] = label_value
    return new_labels


def clone_selector_and_add_label(
    selector: LabelSelector, label_key: str, label_value: str
) -> LabelSelector:
    """Return a deep copy of ``selector`` with one match label added.

    The selector itself is returned when the key is empty.
    """
    if label_key == "":
        return selector

    match_labels = dict(selector.match_labels or {})
    match_labels[label_key] = label_value

    match_expressions = None
    if selector.match_expressions is not None:
        match_expressions = [
            LabelSelectorRequirement(
                key=expr.key,
                operator=expr.operator,
                values=list(expr.values) if expr.values is not None else None,
            )
            for expr in selector.match_expressions
        ]

    return LabelSelector(match_labels=match_labels, match_expressions=match_expressions)


def filter_labels(labels: dict[str, str], filter_key: str) -> dict[str, str]:
    """Return a new mapping without the label named ``filter_key``."""
    return {k: v for k, v in labels.items() if k != filter_key}


def get_int_or_default(value: int | None, default: int) -> int:
    """Return ``value`` unless it is unset."""
    return default if value is None else value