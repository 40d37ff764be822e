"""
Engine Integration Tests
========================

Full pipeline: dataset bundle → adapters → registry → views, layouts
and tools.
"""

import json
import logging

import pytest

from entity_graph.contracts.base import EntityType
from entity_graph.contracts.entities import EntityFilter
from entity_graph.engine import EntityGraphEngine, read_bundle

from tests.fixtures import (
    STAKEHOLDER_RECORD,
    bundle,
    entity_data,
    funding_gap_bundle,
    make_entity,
    make_relationship,
    record,
)


@pytest.fixture
def engine():
    return EntityGraphEngine()


class TestLoad:

    def test_bundle_counts(self, engine):
        report = engine.load(bundle())
        assert report.ok
        assert report.entities_registered == 4
        assert report.by_collection == {
            "challenges": 1,
            "stakeholders": 1,
            "technologies": 1,
            "projects": 1,
            "entities": 0,
        }
        # rel-404 points at an unknown entity
        assert report.relationships_registered == 3
        assert report.relationships_skipped == 1
        assert engine.registry.get_relationships("sh-001", "funds")[0].id == "rel-001"

    def test_bad_records_reported_not_raised(self, engine):
        data = bundle()
        bad = entity_data("bad-entity")
        bad["entityType"] = "spaceship"
        data["entities"] = [bad, entity_data("good-entity")]
        data["relationships"].append("not a record")

        report = engine.load(data)
        assert not report.ok
        assert report.by_collection["entities"] == 1
        assert [f.source_id for f in report.failures["entities"]] == ["bad-entity"]
        assert "entityType" in report.failures["entities"][0].fields
        assert "relationships" in report.failures
        assert "good-entity" in engine.registry
        assert "bad-entity" not in engine.registry

        wire = report.to_dict()
        assert wire["failures"]["entities"][0]["sourceId"] == "bad-entity"

    def test_universal_records_pass_through(self, engine):
        data = bundle()
        data["entities"] = [entity_data("extra")]
        extra, stakeholder = make_entity("extra"), make_entity("sh-001")
        data["relationships"].append(make_relationship(extra, stakeholder, "collaborates_with").to_wire())

        report = engine.load(data)
        assert report.entities_registered == 5
        assert report.relationships_registered == 4
        assert [r.id for r in engine.registry.get_relationships("extra")] == ["extra->sh-001"]

    def test_similarity_edges(self, engine):
        data = bundle()
        data["stakeholders"].append(record(STAKEHOLDER_RECORD, id="sh-002", name="Twin Department"))

        report = engine.load(data, include_similarity=True)
        assert report.similarity_edges == 1
        assert report.relationships_registered == 4
        edge = engine.registry.get_relationships("sh-001", "similar_to")[0]
        assert edge.target == "sh-002"

    def test_reload_replaces_graph(self, engine):
        engine.load(bundle())
        engine.load(funding_gap_bundle())
        assert len(engine.registry) == 3
        assert "ch-001" not in engine.registry
        assert engine.registry.relationships() == []

    def test_clear(self, engine):
        engine.load(bundle())
        engine.clear()
        assert len(engine.registry) == 0


class TestBundleFiles:

    def test_load_file(self, engine, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps(bundle()), encoding="utf-8")
        assert engine.load_file(path).entities_registered == 4

    def test_unknown_keys_warn(self, tmp_path, caplog):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps({"challenges": [], "widgets": []}), encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="entity_graph.engine"):
            data = read_bundle(path)
        assert "widgets" in data
        assert "Ignoring unknown dataset keys: widgets" in caplog.text

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError, match="must be a JSON object"):
            read_bundle(path)


class TestConsumers:

    def test_filtered_network(self, engine):
        engine.load(bundle())
        view = engine.network(EntityFilter(entity_types=(EntityType.PROJECT, EntityType.TECHNOLOGY)))
        assert view.node_ids == {"proj-001", "tech-001"}
        assert [e.id for e in view.edges] == ["rel-002"]

    def test_layout_over_loaded_graph(self, engine):
        engine.load(bundle())
        simulation = engine.build_layout(cluster_by="entity_type")
        positions = simulation.run(20)
        assert simulation.tick_count == 20
        assert set(positions) == {"ch-001", "sh-001", "tech-001", "proj-001"}
        assert len(simulation.clusters()) == 4

    def test_tools_over_loaded_graph(self, engine):
        engine.load(funding_gap_bundle())
        assert engine.execute_tool("calculate_funding_gap", {})["gap"] == 1_000_000
        assert len(engine.describe_tools()) == 7
