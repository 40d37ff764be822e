"""
Scenario Tool Tests
===================

Literal what-if scenarios plus the contract every tool shares:
schema-validated parameters, read-only execution, JSON-ready results.
"""

import pytest

from entity_graph.adapters import challenge, stakeholder
from entity_graph.contracts.base import Domain, EntityType
from entity_graph.errors import EntityNotFoundError, InvalidToolParameters, UnknownToolError
from entity_graph.registry import EntityRegistry
from entity_graph.tools import (
    InMemorySimilarityBackend,
    ScenarioToolkit,
    SearchOptions,
    build_embedding_text,
    funding_needed,
    heuristic_similarity,
    trl_in_range,
)

from tests.fixtures import chain, funding_gap_bundle, make_entity, make_relationship, star


TOOL_NAMES = [
    "filter_entities",
    "calculate_funding_gap",
    "find_similar_entities",
    "find_dependencies",
    "simulate_removal",
    "compare_scenarios",
    "get_network_statistics",
]


def toolkit_for(entities, edges=(), backend=None):
    registry = EntityRegistry()
    registry.register(entities)
    registry.register_relationships(edges)
    return ScenarioToolkit(registry, backend)


@pytest.fixture
def gap_toolkit():
    data = funding_gap_bundle()
    entities = challenge.to_entities(data["challenges"]) + stakeholder.to_entities(data["stakeholders"])
    return toolkit_for(entities)


@pytest.fixture
def mixed_toolkit():
    entities = [
        make_entity("rail-1", entity_type=EntityType.CHALLENGE, domain=Domain.ATLAS,
                    sector="rail", trl={"current": 5, "min": 4, "max": 6}, funding={"amount": 1_000_000}),
        make_entity("rail-2", entity_type=EntityType.CHALLENGE, domain=Domain.ATLAS,
                    sector="rail", trl=8, funding={"amount": 3_000_000}),
        make_entity("air-1", entity_type=EntityType.TECHNOLOGY, domain=Domain.NAVIGATE,
                    sector="aviation", trl={"current": 5, "target": 8}),
        make_entity("org-1", domain=Domain.NAVIGATE, sector="rail", funding={"amount": 500_000}),
    ]
    return toolkit_for(entities)


class TestToolRegistry:

    def test_seven_tools_in_order(self, mixed_toolkit):
        assert mixed_toolkit.names == TOOL_NAMES
        declarations = mixed_toolkit.describe()
        assert all({"name", "description", "parameters"} <= set(d) for d in declarations)
        assert declarations[2]["parameters"]["required"] == ["entityId"]

    def test_unknown_tool(self, mixed_toolkit):
        with pytest.raises(UnknownToolError, match="Unknown tool: teleport"):
            mixed_toolkit.execute("teleport", {})

    def test_unknown_parameter_rejected(self, mixed_toolkit):
        with pytest.raises(InvalidToolParameters) as exc:
            mixed_toolkit.execute("filter_entities", {"colour": "red"})
        assert "colour" in [v.field for v in exc.value.violations]

    def test_tools_do_not_mutate_registry(self):
        hub, leaves, edges = star()
        toolkit = toolkit_for([hub] + leaves, edges)
        before = (len(toolkit.registry), len(toolkit.registry.relationships()))
        for name, params in [
            ("simulate_removal", {"entityId": "hub"}),
            ("find_dependencies", {"entityId": "hub"}),
            ("get_network_statistics", {}),
        ]:
            toolkit.execute(name, params)
        assert (len(toolkit.registry), len(toolkit.registry.relationships())) == before


class TestFundingGap:

    def test_shortfall(self, gap_toolkit):
        result = gap_toolkit.execute("calculate_funding_gap", {})
        assert result["totalNeeded"] == 5_000_000
        assert result["availableFunding"] == 4_000_000
        assert result["gap"] == 1_000_000
        assert result["isGap"] is True
        assert result["sector"] == "all"
        assert result["message"].startswith("Funding gap of £1.0M")

    def test_multiplier_turns_gap_into_surplus(self, gap_toolkit):
        result = gap_toolkit.execute("calculate_funding_gap", {"fundingMultiplier": 2.0})
        assert result["adjustedAvailable"] == 8_000_000
        assert result["gap"] == -3_000_000
        assert result["isGap"] is False
        assert result["message"] == "Funding surplus of £3.0M."

    def test_explicit_ids_restrict_challenges(self, gap_toolkit):
        result = gap_toolkit.execute("calculate_funding_gap", {"challengeIds": ["gap-ch-1"]})
        assert result["challenges"] == 1
        assert result["gap"] == -2_000_000

    def test_unknown_challenge_id(self, gap_toolkit):
        with pytest.raises(EntityNotFoundError, match="Entity ghost not found"):
            gap_toolkit.execute("calculate_funding_gap", {"challengeIds": ["gap-ch-1", "ghost"]})

    def test_sector_filter(self, gap_toolkit):
        result = gap_toolkit.execute("calculate_funding_gap", {"sector": "energy"})
        assert (result["challenges"], result["stakeholders"], result["gap"]) == (0, 0, 0)

    def test_negative_multiplier_rejected(self, gap_toolkit):
        with pytest.raises(InvalidToolParameters):
            gap_toolkit.execute("calculate_funding_gap", {"fundingMultiplier": -1})

    def test_range_midpoint_when_no_amount(self):
        entity = make_entity("c", entity_type=EntityType.CHALLENGE,
                             custom={"funding_range": {"min": 1_000_000, "max": 3_000_000}})
        assert funding_needed(entity) == 2_000_000
        assert funding_needed(make_entity("d", entity_type=EntityType.CHALLENGE)) == 0.0


class TestFilterAndCompare:

    def test_filter_by_sector_and_funding(self, mixed_toolkit):
        result = mixed_toolkit.execute("filter_entities", {"sector": "rail", "minFunding": 1_000_000})
        assert result["count"] == 2
        assert result["totalFunding"] == 4_000_000
        assert result["averageFunding"] == 2_000_000
        assert result["summary"] == "Found 2 entities matching criteria. Total funding: £4.0M"

    def test_trl_range_semantics(self, mixed_toolkit):
        ids = lambda r: {e["id"] for e in r["entities"]}
        assert ids(mixed_toolkit.execute("filter_entities", {"trlRange": [4, 6]})) == {"rail-1", "air-1"}
        assert ids(mixed_toolkit.execute("filter_entities", {"trlRange": [5, 6]})) == {"air-1"}
        assert ids(mixed_toolkit.execute("filter_entities", {"trlRange": [7, 9]})) == {"rail-2"}

    def test_reversed_trl_range_rejected(self, mixed_toolkit):
        with pytest.raises(InvalidToolParameters) as exc:
            mixed_toolkit.execute("filter_entities", {"trlRange": [6, 4]})
        assert "trlRange" in [v.field for v in exc.value.violations]

    def test_trl_in_range_bare_value(self):
        assert trl_in_range(make_entity("x", trl=5), 5, 5)
        assert not trl_in_range(make_entity("y"), 1, 9)

    def test_identical_scenarios(self, mixed_toolkit):
        scenario = {"domain": "atlas"}
        result = mixed_toolkit.execute("compare_scenarios", {"scenarioA": scenario, "scenarioB": scenario})
        diff = result["differences"]
        assert diff["onlyInA"] == 0 and diff["onlyInB"] == 0
        assert diff["inBoth"] == result["scenarioA"]["count"] == 2
        assert diff["fundingDifference"] == 0

    def test_different_scenarios(self, mixed_toolkit):
        result = mixed_toolkit.execute("compare_scenarios", {
            "scenarioA": {"sector": "rail"},
            "scenarioB": {"domain": "navigate"},
        })
        diff = result["differences"]
        assert (diff["onlyInA"], diff["onlyInB"], diff["inBoth"]) == (2, 1, 1)
        assert diff["countDifference"] == -1


class TestDependenciesAndRemoval:

    def test_star_removal_isolates_every_leaf(self):
        hub, leaves, edges = star(5)
        toolkit = toolkit_for([hub] + leaves, edges)
        result = toolkit.execute("simulate_removal", {"entityId": "hub"})
        assert {e["id"] for e in result["isolatedEntities"]} == {f"leaf-{i}" for i in range(5)}
        assert result["disconnectedEntities"] == 5
        assert result["impact"]["connectionsLost"] == 5
        assert result["impact"]["networkFragmentation"] == pytest.approx(5 / 6)

    def test_leaf_with_other_links_is_not_isolated(self):
        hub, leaves, edges = star(2)
        extra = make_entity("other")
        toolkit = toolkit_for([hub, extra] + leaves, edges + [make_relationship(extra, leaves[0])])
        result = toolkit.execute("simulate_removal", {"entityId": "hub"})
        assert [e["id"] for e in result["isolatedEntities"]] == ["leaf-1"]

    def test_dependencies_in_both_directions(self):
        entities, edges = chain(["a", "b", "c"])
        toolkit = toolkit_for(entities, edges)
        result = toolkit.execute("find_dependencies", {"entityId": "b"})
        assert result["connections"] == 2
        assert {e["id"] for e in result["connectedEntities"]} == {"a", "c"}
        assert result["relationshipBreakdown"] == {"collaborates_with": 2}

    def test_dependencies_filtered_by_type(self):
        hub, leaves, edges = star(2)
        toolkit = toolkit_for([hub] + leaves, edges)
        result = toolkit.execute("find_dependencies", {"entityId": "hub", "relationshipTypes": ["owns"]})
        assert result["connections"] == 0

    def test_missing_entity(self):
        toolkit = toolkit_for([make_entity("a")])
        with pytest.raises(EntityNotFoundError, match="Entity ghost not found"):
            toolkit.execute("simulate_removal", {"entityId": "ghost"})


class TestSimilarity:

    def _entities(self):
        return [
            make_entity("src", entity_type=EntityType.CHALLENGE, domain=Domain.ATLAS,
                        name="Rail noise", description="reduce rail noise near homes"),
            make_entity("twin", entity_type=EntityType.CHALLENGE, domain=Domain.ATLAS,
                        name="Rail noise", description="rail noise near stations"),
            make_entity("far", entity_type=EntityType.CHALLENGE, domain=Domain.ATLAS,
                        name="Port cranes", description="automate container cranes"),
            make_entity("other-domain", entity_type=EntityType.CHALLENGE, domain=Domain.NAVIGATE,
                        name="Rail noise", description="reduce rail noise near homes"),
        ]

    def test_heuristic_ranking_within_domain(self):
        toolkit = toolkit_for(self._entities())
        result = toolkit.execute("find_similar_entities", {"entityId": "src"})
        ids = [e["id"] for e in result["similarEntities"]]
        assert ids == ["twin", "far"]
        assert result["message"] == "Found 2 similar challenges"

    def test_cross_domain(self):
        toolkit = toolkit_for(self._entities())
        result = toolkit.execute("find_similar_entities", {"challengeId": "src", "crossDomain": True, "topK": 1})
        assert [e["id"] for e in result["similarEntities"]] == ["other-domain"]
        assert result["similarEntities"][0]["similarity"] == 100

    def test_heuristic_score_bounds(self):
        a, b = make_entity("a", name="X"), make_entity("b", name="x")
        assert heuristic_similarity(a, b) == 0.5

    def test_backend_results_exclude_source(self):
        vocabulary = ["rail", "noise", "cranes", "port"]

        def embed(text):
            words = text.lower().split()
            return [sum(w.strip(",.:") == v for w in words) for v in vocabulary]

        entities = self._entities()
        backend = InMemorySimilarityBackend(embed)
        assert backend.embed_all(entities) == 4
        toolkit = toolkit_for(entities, backend=backend)
        result = toolkit.execute("find_similar_entities", {"entityId": "src", "topK": 1})
        assert [e["id"] for e in result["similarEntities"]] == ["twin"]
        assert backend.delete_embedding("far") is True
        assert backend.delete_embedding("far") is False

    def test_backend_search_filters(self):
        backend = InMemorySimilarityBackend(lambda text: [1.0, float(len(text))])
        backend.embed_all(self._entities())
        matches = backend.search("rail", SearchOptions(domain=Domain.NAVIGATE, top_k=5))
        assert [m.entity.id for m in matches] == ["other-domain"]

    def test_embedding_text(self):
        entity = make_entity("c", entity_type=EntityType.CHALLENGE, name="Noise", description="Too loud",
                             tags=["noise"], sector="rail", trl={"current": 6, "min": 4, "max": 6},
                             funding={"amount": 2_500_000})
        assert build_embedding_text(entity) == (
            "Noise\n\nToo loud\n\nKeywords: noise\n\nSector: rail\n\nTRL: 4-6\n\n"
            "Funding: £2.5M\n\nType: challenge"
        )


class TestNetworkStatistics:

    def test_whole_network(self):
        hub, leaves, edges = star(3)
        lonely = make_entity("lonely", funding={"amount": 1_000_000})
        toolkit = toolkit_for([hub, lonely] + leaves, edges)
        result = toolkit.execute("get_network_statistics", {})
        assert result["totalEntities"] == 5
        assert result["relationships"] == 3
        assert result["averageDegree"] == pytest.approx(2 * 3 / 5)
        assert result["connectedComponents"] == 2
        assert result["totalFunding"] == 1_000_000

    def test_subset_counts_only_internal_edges(self):
        hub, leaves, edges = star(3)
        toolkit = toolkit_for([hub] + leaves, edges)
        result = toolkit.execute("get_network_statistics", {"entityIds": ["hub", "leaf-0", "missing"]})
        assert result["totalEntities"] == 2
        assert result["relationships"] == 1
        assert result["byType"] == {"stakeholder": 2}
