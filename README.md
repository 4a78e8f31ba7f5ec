# runnerfleet

Building blocks for keeping a fleet of self-hosted CI runners at the size
you want. It covers fingerprinting runner templates, label and selector
handling, building replica sets and runners from templates, recurring time
windows, and reporting on HTTP calls to the runners API.

## Modules

- `runnerfleet.hashing`
  - `dump_object(obj)` renders nested values (dataclasses, mappings, lists,
    sets, datetimes, enums, plain objects) as a stable string. Mapping keys
    and set members are sorted, so only content matters.
  - `fnv32a(data)` is the 32-bit FNV-1a hash of bytes or a string.
  - `deep_hash_object(obj)` hashes the `dump_object` rendering.
  - `safe_encode_string(value)` maps each character onto a vowel-free
    alphabet, so encoded hashes never spell words.
  - `fnv_hash_string_objects(*args)` returns the encoded hash. Each object
    restarts the hasher, so the last object alone determines the result.
- `runnerfleet.labels`
  - `LabelSelector` and `LabelSelectorRequirement` dataclasses.
  - `compute_hash(template)` returns the encoded hash of a whole template.
  - `clone_and_add_label` and `clone_selector_and_add_label` return copies
    with one label added. They return the input unchanged when the key is
    empty.
  - `filter_labels(labels, filter_key)` returns a mapping without one key.
  - `get_int_or_default(value, default)`.
- `runnerfleet.replicasets`
  - Dataclasses: `ObjectMeta`, `OwnerReference`, `RunnerSpec`,
    `RunnerTemplate`, `RunnerDeployment`, `RunnerReplicaSet`, `Runner`.
  - `new_runner_replica_set(rd, common_runner_labels)` builds the replica set
    a deployment asks for. It appends the common runner labels to the
    template, then labels the result with the template hash and the
    deployment name. It also adds the hash to the selector and makes the
    deployment the controlling owner.
  - `get_selector(rd)` returns the deployment's selector. Without one, it
    defaults to the `runner-deployment-name` label.
  - `get_template_hash(rs)` returns the hash label, or `None`.
  - `ensure_template_hash(rs)` returns a copy that carries a hash label. It
    computes the hash if the label is missing.
  - `new_runner(rs, now)` creates a `Runner` from the replica set's template
    with a `sync-time` annotation.
  - `registration_only_runner_name_for(rs_name)`.
  - Setting an owner raises `ValueError` in two cases: the owner is in
    another namespace, or the object is already controlled by a different
    owner.
- `runnerfleet.schedule`
  - `match_schedule(now, start_time, end_time, recurrence_rule)` returns
    `(active, upcoming)`. Each is a `Period` or `None`.
  - `RecurrenceRule.frequency` is `""` (one-time), `"Daily"`, `"Weekly"`,
    `"Monthly"` or `"Yearly"`. `until_time` optionally ends the recurrence.
  - An unknown frequency raises `ValueError`. So does a window longer than
    its recurrence interval.
  - `str(period)` gives `start-end` in RFC 3339.
- `runnerfleet.logs`
  - `new_logger(log_level)` configures the `runnerfleet` logger on stderr
    with RFC 3339 timestamps. It accepts `debug`, `info`, `warn`, `error`,
    or a signed 8-bit integer where `-n` enables messages of verbosity `n`.
    Anything else raises `ValueError`.
  - `LoggingTransport` is a `requests` adapter that logs each response. It
    logs the method, the URL, whether the response came from cache, and the
    remaining rate limit for responses that did not come from cache. At
    verbosity 4 it also logs headers and body.
- `runnerfleet.metrics`
  - `Gauge` holds a named value.
  - `parse_response(response)` updates `METRIC_RATE_LIMIT` and
    `METRIC_RATE_LIMIT_REMAINING` from the `X-RateLimit-Limit` and
    `X-RateLimit-Remaining` headers. It leaves a gauge unchanged when its
    header is missing or malformed.
  - `MetricsTransport` is a `requests` adapter that calls `parse_response`
    for every response.
- `runnerfleet.fake_github`
  - `RunnersList` is an in-memory list of `GitHubRunner` entries, unique by
    name.
  - Methods: `add`, `remove`, `list_payload`, `sync` (replace the list with
    online runners) and `add_offline`.
  - `get_server()` starts a local HTTP server. It lists runners on
    `/repos/{owner}/{repo}/actions/runners` and
    `/orgs/{org}/actions/runners`, and removes a runner when a request names
    its id under those paths. The server exposes `url` and `close()` and can
    be used as a context manager.

## Examples

A weekly window:

```python
from datetime import datetime, timezone, timedelta
from runnerfleet.schedule import RecurrenceRule, match_schedule

tz = timezone(timedelta(hours=9))
active, upcoming = match_schedule(
    datetime(2021, 5, 8, tzinfo=tz),
    datetime(2021, 5, 1, tzinfo=tz),
    datetime(2021, 5, 3, tzinfo=tz),
    RecurrenceRule(frequency="Weekly"),
)
print(active)    # 2021-05-08T00:00:00+09:00-2021-05-10T00:00:00+09:00
print(upcoming)  # 2021-05-15T00:00:00+09:00-2021-05-17T00:00:00+09:00
```

Labels and selectors:

```python
from runnerfleet.labels import LabelSelector, clone_selector_and_add_label, filter_labels

selector = LabelSelector(match_labels={"foo": "bar"})
pinned = clone_selector_and_add_label(selector, "runner-template-hash", "abc123")
print(pinned.match_labels)  # {'foo': 'bar', 'runner-template-hash': 'abc123'}
print(filter_labels({"a": "1", "b": "2"}, "a"))  # {'b': '2'}
```

A replica set from a deployment:

```python
from runnerfleet.replicasets import (
    ObjectMeta, RunnerDeployment, RunnerSpec, RunnerTemplate, new_runner_replica_set,
)

rd = RunnerDeployment(
    metadata=ObjectMeta(name="example"),
    template=RunnerTemplate(spec=RunnerSpec(labels=["project1"])),
)
rs = new_runner_replica_set(rd, ["dev"])
print(rs.template.spec.labels)  # ['project1', 'dev']
print(rs.metadata.generate_name)  # example-
```

Recording rate limits with a `requests` session:

```python
import requests
from runnerfleet.metrics import MetricsTransport

session = requests.Session()
session.mount("https://", MetricsTransport())
```

## What it does not do

`runnerfleet` is a library of pieces. It has these limits:

- It has no reconciliation loop.
- It does not talk to a cluster API.
- It does not create, scale or delete anything on its own.
- It has no command-line entry point.

The objects in `runnerfleet.replicasets` are plain dataclasses. They are
built and inspected in memory, and storing them is up to the caller.

## Tests

```
pip install -e ".[test]"
pytest
```