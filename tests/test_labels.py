from dataclasses import dataclass, field

from runnerfleet.labels import (
    LABEL_KEY_RUNNER_TEMPLATE_HASH,
    LabelSelector,
    LabelSelectorRequirement,
    clone_and_add_label,
    clone_selector_and_add_label,
    compute_hash,
    filter_labels,
    get_int_or_default,
)

POD_TEMPLATE_HASH = "pod-template-hash"


@dataclass
class _Spec:
    labels: list = field(default_factory=list)
    meta: dict = field(default_factory=dict)


def test_filter_labels_ok():
    labels = {LABEL_KEY_RUNNER_TEMPLATE_HASH: "abc", POD_TEMPLATE_HASH: "def"}
    assert filter_labels(labels, LABEL_KEY_RUNNER_TEMPLATE_HASH) == {POD_TEMPLATE_HASH: "def"}


def test_filter_labels_leaves_input_untouched():
    labels = {"a": "1", "b": "2"}
    filter_labels(labels, "a")
    assert labels == {"a": "1", "b": "2"}


def test_clone_and_add_label_empty_key_returns_same():
    labels = {"a": "1"}
    assert clone_and_add_label(labels, "", "x") is labels


def test_clone_and_add_label_copies():
    labels = {"a": "1"}
    result = clone_and_add_label(labels, "b", "2")
    assert result == {"a": "1", "b": "2"}
    assert labels == {"a": "1"}


def test_clone_and_add_label_from_none():
    assert clone_and_add_label(None, "k", "v") == {"k": "v"}


def test_clone_selector_empty_key_returns_same():
    selector = LabelSelector(match_labels={"a": "1"})
    assert clone_selector_and_add_label(selector, "", "v") is selector


def test_clone_selector_adds_label_and_deep_copies():
    requirement = LabelSelectorRequirement(key="env", operator="In", values=["dev"])
    selector = LabelSelector(match_labels={"foo": "bar"}, match_expressions=[requirement])
    result = clone_selector_and_add_label(selector, "hash", "xyz")

    assert result.match_labels == {"foo": "bar", "hash": "xyz"}
    assert selector.match_labels == {"foo": "bar"}
    assert result.match_expressions == [requirement]
    result.match_expressions[0].values.append("prod")
    assert requirement.values == ["dev"]


def test_clone_selector_preserves_none_parts():
    selector = LabelSelector()
    result = clone_selector_and_add_label(selector, "k", "v")
    assert result.match_labels == {"k": "v"}
    assert result.match_expressions is None


def test_clone_selector_keeps_none_values():
    selector = LabelSelector(
        match_expressions=[LabelSelectorRequirement(key="k", operator="Exists")]
    )
    result = clone_selector_and_add_label(selector, "a", "b")
    assert result.match_expressions[0].values is None


def test_get_int_or_default():
    assert get_int_or_default(None, 1) == 1
    assert get_int_or_default(0, 1) == 0
    assert get_int_or_default(5, 1) == 5


def test_compute_hash_deterministic_and_sensitive():
    first = _Spec(labels=["project1", "dev"], meta={"foo": "bar"})
    same = _Spec(labels=["project1", "dev"], meta={"foo": "bar"})
    other_labels = _Spec(labels=["project2", "dev"], meta={"foo": "bar"})
    other_meta = _Spec(labels=["project1", "dev"], meta={"foo": "baz"})

    assert compute_hash(first) == compute_hash(same)
    assert compute_hash(first) != compute_hash(other_labels)
    assert compute_hash(first) != compute_hash(other_meta)


def test_compute_hash_alphabet():
    assert set(compute_hash(_Spec())) <= set("bcdfghjklmnpqrstvwxz2456789")