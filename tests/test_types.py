import uuid

from limitgraph.core.types import (
    GovernanceCheckpoint,
    Provenance,
    RDPoint,
    RDSeries,
    new_trace_id,
)


def test_new_trace_id_is_unique_v4():
    ids = {new_trace_id() for _ in range(20)}
    assert len(ids) == 20
    assert all(isinstance(i, uuid.UUID) and i.version == 4 for i in ids)


def test_rd_series_from_integration_case():
    series = RDSeries(
        points=[
            RDPoint(reward=0.5, difficulty=1.0),
            RDPoint(reward=0.7, difficulty=2.0),
        ]
    )
    assert len(series.points) == 2
    assert series.knee_index() is None


def test_add_appends_in_order():
    series = RDSeries()
    series.add(RDPoint(reward=0.5, difficulty=1.0))
    series.add(RDPoint(reward=0.7, difficulty=2.0))
    series.add(RDPoint(reward=0.9, difficulty=3.0))
    assert [p.reward for p in series.points] == [0.5, 0.7, 0.9]


def test_knee_index_picks_farthest_point():
    series = RDSeries(
        points=[
            RDPoint(reward=0.0, difficulty=0.0),
            RDPoint(reward=10.0, difficulty=1.0),
            RDPoint(reward=11.0, difficulty=2.0),
            RDPoint(reward=12.0, difficulty=10.0),
        ]
    )
    assert series.knee_index() == 1


def test_knee_index_collinear_points_returns_first_middle():
    series = RDSeries(
        points=[RDPoint(reward=float(i), difficulty=float(i)) for i in range(5)]
    )
    assert series.knee_index() == 1


def test_knee_index_never_endpoint():
    series = RDSeries(
        points=[
            RDPoint(reward=0.5, difficulty=1.0),
            RDPoint(reward=0.7, difficulty=2.0),
            RDPoint(reward=0.9, difficulty=3.0),
        ]
    )
    assert series.knee_index() == 1


def test_to_dict_shape():
    series = RDSeries(points=[RDPoint(reward=0.5, difficulty=1.0, step=3)])
    assert series.to_dict() == {
        "points": [{"reward": 0.5, "difficulty": 1.0, "step": 3}]
    }


def test_provenance_and_checkpoint_defaults():
    prov = Provenance(source="lecture/1", operation="merge")
    chk = GovernanceCheckpoint(label="no-jailbreak-merge", passed=True)
    assert prov.rationale is None
    assert chk.details is None
    assert chk.passed is True