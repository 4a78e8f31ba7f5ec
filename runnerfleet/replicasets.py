"""Runner deployments, runner replica sets and the runners they stamp out."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from runnerfleet.labels import (
    LABEL_KEY_RUNNER_DEPLOYMENT_NAME,
    LABEL_KEY_RUNNER_TEMPLATE_HASH,
    LabelSelector,
    clone_and_add_label,
    clone_selector_and_add_label,
    compute_hash,
)

GROUP_VERSION = "actions.summerwind.dev/v1alpha1"
SYNC_TIME_ANNOTATION_KEY = "sync-time"

_log = logging.getLogger(__name__)


@dataclass
class OwnerReference:
    """A link from an object to the object that owns it."""

    api_version: str
    kind: str
    name: str
    uid: str = ""
    controller: bool = True
    block_owner_deletion: bool = True


@dataclass
class ObjectMeta:
    """Identity, labels and annotations of an object."""

    name: str = ""
    generate_name: str = ""
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    owner_references: list[OwnerReference] = field(default_factory=list)


@dataclass
class RunnerSpec:
    """Configuration of a single self-hosted runner."""

    repository: str = ""
    organization: str = ""
    enterprise: str = ""
    group: str = ""
    labels: list[str] = field(default_factory=list)
    image: str = ""
    ephemeral: bool | None = None
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class RunnerTemplate:
    """Metadata and spec from which runners are created."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: RunnerSpec = field(default_factory=RunnerSpec)


@dataclass
class RunnerDeployment:
    """A desired number of runners, rolled out through replica sets."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    template: RunnerTemplate = field(default_factory=RunnerTemplate)
    replicas: int | None = None
    selector: LabelSelector | None = None
    effective_time: datetime | None = None


@dataclass
class RunnerReplicaSet:
    """A set of identical runners created from one template."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    template: RunnerTemplate = field(default_factory=RunnerTemplate)
    replicas: int | None = None
    selector: LabelSelector | None = None
    effective_time: datetime | None = None


@dataclass
class Runner:
    """A single self-hosted runner."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: RunnerSpec = field(default_factory=RunnerSpec)


def _set_controller_reference(owner: ObjectMeta, kind: str, obj: ObjectMeta) -> None:
    """Make ``owner`` the controller of ``obj``.

    Raises ValueError for a cross-namespace owner or when ``obj`` is
    already controlled by a different owner.
    """
    if owner.namespace and owner.namespace != obj.namespace:
        raise ValueError(
            f"cross-namespace owner references are disallowed, owner's namespace "
            f"{owner.namespace}, obj's namespace {obj.namespace}"
        )
    if not owner.namespace and obj.namespace and owner.name == "":
        raise ValueError("owner has no name")

    ref = OwnerReference(
        api_version=GROUP_VERSION,
        kind=kind,
        name=owner.name,
        uid=owner.uid,
    )

    for existing in obj.owner_references:
        if existing.controller and (
            existing.kind != ref.kind or existing.name != ref.name or existing.uid != ref.uid
        ):
            raise ValueError(
                f"Object {obj.namespace}/{obj.name or obj.generate_name} is already owned by "
                f"another {existing.kind} controller {existing.name}"
            )

    obj.owner_references = [
        existing
        for existing in obj.owner_references
        if not (existing.kind == ref.kind and existing.name == ref.name)
    ]
    obj.owner_references.append(ref)


def _format_rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.isoformat(timespec="seconds")
    if moment.utcoffset() == timedelta(0):
        return text[: -len("+00:00")] + "Z"
    return text


def get_template_hash(rs: RunnerReplicaSet) -> str | None:
    """Return the runner template hash label of ``rs``, or None if absent."""
    return (rs.metadata.labels or {}).get(LABEL_KEY_RUNNER_TEMPLATE_HASH)


def get_selector(rd: RunnerDeployment) -> LabelSelector:
    """Return the deployment's selector, defaulting to its name label."""
    if rd.selector is not None:
        return rd.selector
    return LabelSelector(match_labels={LABEL_KEY_RUNNER_DEPLOYMENT_NAME: rd.metadata.name})


def new_runner_replica_set(
    rd: RunnerDeployment, common_runner_labels: list[str] | None = None
) -> RunnerReplicaSet:
    """Build the replica set that ``rd`` currently asks for.

    The template gets the common runner labels appended, and both the
    template and the selector carry the hash of the resulting template.
    """
    template = copy.deepcopy(rd.template)
    template.spec.labels.extend(common_runner_labels or [])

    template_hash = compute_hash(template)

    template.metadata.labels = clone_and_add_label(
        template.metadata.labels, LABEL_KEY_RUNNER_TEMPLATE_HASH, template_hash
    )
    template.metadata.labels = clone_and_add_label(
        template.metadata.labels, LABEL_KEY_RUNNER_DEPLOYMENT_NAME, rd.metadata.name
    )

    selector = clone_selector_and_add_label(
        get_selector(rd), LABEL_KEY_RUNNER_TEMPLATE_HASH, template_hash
    )

    rs = RunnerReplicaSet(
        metadata=ObjectMeta(
            generate_name=rd.metadata.name + "-",
            namespace=rd.metadata.namespace,
            labels=dict(template.metadata.labels or {}),
        ),
        template=template,
        replicas=rd.replicas,
        selector=selector,
        effective_time=rd.effective_time,
    )

    _set_controller_reference(rd.metadata, "RunnerDeployment", rs.metadata)
    return rs


def ensure_template_hash(rs: RunnerReplicaSet) -> RunnerReplicaSet:
    """Return a copy of ``rs`` that is sure to carry a template hash label.

    A missing hash is computed from the spec without replicas and
    effective time, and added to both the set's and the template's labels.
    """
    result = copy.deepcopy(rs)
    if result.metadata.labels is None:
        result.metadata.labels = {}

    if result.metadata.labels.get(LABEL_KEY_RUNNER_TEMPLATE_HASH, "") == "":
        spec = {
            "replicas": None,
            "selector": result.selector,
            "template": result.template,
            "effective_time": None,
        }
        template_hash = compute_hash(spec)

        _log.info("Using auto-generated template hash", extra={"fields": {"value": template_hash}})

        result.metadata.labels = clone_and_add_label(
            result.metadata.labels, LABEL_KEY_RUNNER_TEMPLATE_HASH, template_hash
        )
        result.template.metadata.labels = clone_and_add_label(
            result.template.metadata.labels, LABEL_KEY_RUNNER_TEMPLATE_HASH, template_hash
        )

    return result


def new_runner(rs: RunnerReplicaSet, now: datetime | None = None) -> Runner:
    """Build a runner from the replica set's template.

    The runner is stamped with a sync-time annotation taken from ``now``
    (the current time when omitted) and is controlled by ``rs``.
    """
    if now is None:
        now = datetime.now().astimezone()

    metadata = copy.deepcopy(rs.template.metadata)
    metadata.generate_name = rs.metadata.name + "-"
    metadata.namespace = rs.metadata.namespace
    if metadata.annotations is None:
        metadata.annotations = {}
    metadata.annotations[SYNC_TIME_ANNOTATION_KEY] = _format_rfc3339(now)

    runner = Runner(metadata=metadata, spec=copy.deepcopy(rs.template.spec))

    _set_controller_reference(rs.metadata, "RunnerReplicaSet", runner.metadata)
    return runner


def registration_only_runner_name_for(rs_name: str) -> str:
    """Return the name of the registration-only runner of a replica set."""
    return rs_name + "-registration-only"