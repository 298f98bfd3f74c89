# limitgraph

Tools for running agent sessions under a governance policy, keeping a record
of what they did, and measuring the results.

## What is in the package

- **Sessions and trace types** (`limitgraph.core.session`,
  `limitgraph.core.types`): `Session` and `SessionConfig`; `Provenance`,
  `GovernanceCheckpoint`, `RDPoint` and `RDSeries` (whose `knee_index()`
  picks the point farthest from the line joining the first and last points);
  `new_trace_id()`.
- **Backend runners** (`limitgraph.core.runners`): `PythonRunner`,
  `LlamaRunner` and `LargeModelRunner`, all implementing `BackendRunner`
  (`run`, `execute_isolated`, `health_check`, `supports_isolation`).
- **Rate-distortion analysis** (`limitgraph.core.rd_computation`):
  `RDComputation` with `FGWConfig` computes a feature/structure distortion,
  Shannon rates, RD curves from `(distortion, variance)` steps, the knee point
  by maximum Menger curvature, distortion reduction and variance.
- **Agents** (`limitgraph.agents`): the abstract `Agent` with its `step(ctx)`,
  and the records `AgentConfig`, `AgentMetrics`, `SerendipityTrace` and
  `BenchmarkRun`.
- **Storage** (`limitgraph.storage.file_storage`,
  `limitgraph.storage.db_storage`): the `Storage` interface and three
  backends. `FileStorage` writes JSON files under `root/<session>/`;
  `SqliteStorage` writes JSON text into SQLite tables; `KVStorage` keeps a
  key-value table in a directory and can read values back with `get(key)`.
- **Orchestration** (`limitgraph.orchestration.orchestrator`): an
  `Orchestrator` that runs tasks on a runner, screens them for jailbreak and
  destructive-command patterns, flags and quarantines traces, and checks
  merges against a `GovernancePolicy` (default, `permissive()` or
  `strict()`). Blocked traces raise `GovernanceViolation`.
- **Multi-intent question answering** (`limitgraph.muisqa`):
  - `dataset`: `Intent`, `MuISQAEntry`, `MuISQADataset` (JSON and CSV
    loading, `synthetic(size)`, filtering, `stats()`, `save_json`).
  - `question`: `QuestionParser` detects intents from keyword matches and
    extracts keywords and capitalised words.
  - `metrics`: `RetrievalMetrics` (precision, recall, F1, MRR, NDCG),
    `AnswerMetrics` (token overlap, LCS-based ROUGE-L, Jaccard similarity,
    intent coverage) and the combined `MuISQAMetrics`.
  - `agent`: `MuISQAAgent` parses a question, checks it against governance,
    builds document names from its keywords, composes an answer, scores it and
    persists the metrics.
  - `evaluation`: `load_dataset` for domain-tagged sample files and
    `evaluate` for a `MultiIntentQuestion` made of `SubIntent`s.
- **HTTP API** (`limitgraph.api`): `create_app(root)` builds a Starlette
  application; `main` serves it with uvicorn.

## Installation

```
pip install limitgraph
```

For running the tests:

```
pip install "limitgraph[test]"
pytest
```

## Quick look

Parse a question into its intents:

```python
from limitgraph.muisqa.question import QuestionParser

question = QuestionParser().parse("What is the difference between AI and ML?")
print(question.is_multi_intent())
for intent in question.intents:
    print(intent.intent, intent.confidence)
```

Build a synthetic dataset and look at its statistics:

```python
from limitgraph.muisqa.dataset import MuISQADataset

dataset = MuISQADataset.synthetic(20)
stats = dataset.stats()
print(stats.total_entries, stats.multi_intent_entries)
```

Trace a rate-distortion curve and find its knee:

```python
from limitgraph.core.rd_computation import FGWConfig, RDComputation

rd = RDComputation(FGWConfig())
rd.compute_rd_curve([(1.0, 2.0), (0.5, 2.0), (0.25, 2.0), (0.1, 2.0)])
print(rd.find_knee_point())
```

## Commands

Run the multi-intent question answering walkthrough (synthetic dataset,
question parsing, the agent, and governance on risky questions):

```
muisqa-demo
```

Options: `--data-dir DIR` sets where traces are written (default `data`);
`--sample FILE` instead evaluates the first entry of a domain-tagged JSON
sample file and prints its metrics.

Start the HTTP API server:

```
limitgraph-api
```

Options: `--host` (default `0.0.0.0`), `--port` (default `8080`) and
`--root` for the storage directory (default `data/api`).

The server offers:

- `GET /health`
- `POST /traces` with `session_id` and `data`
- `POST /traces/{trace_id}/provenance` with `session_id`, `trace_id` and a
  `provenance` object (`agent`, `action`, `timestamp`, `metadata`)
- `GET /rd/knee`
- `POST /artifacts/export` with `session_id` and `format`
- `GET /governance/stats`
- `POST /governance/flag` with `trace_id`, `flag_type` (`jailbreak`,
  `anomaly`, `high_risk`, `unsafe` or `malicious`), `reason` and `severity`
- `POST /sessions`
- `GET /sessions/{session_id}`

## What it does not do

- The runners execute nothing: they return output describing the task or code
  and the session it was given. `LlamaRunner.health_check` only checks that the
  model file exists, and `LargeModelRunner.health_check` only that an API key
  was set.
- The question-answering agent does no real retrieval or generation; document
  names are built from the question's keywords and scored against fixed
  reference values.
- `evaluate` counts retrieved evidence; its accuracy, coverage and entropy are
  fixed baseline values.
- Storage is write-only apart from `KVStorage.get`. There is no PostgreSQL
  backend.
- In the HTTP API, nothing adds points to the RD series, so `/rd/knee` reports
  no knee; `/artifacts/export` returns an empty artifact list;
  `GET /sessions/{session_id}` does not look sessions up, it only checks the
  identifier and reports it as active; flags and quarantines are kept in
  memory only.