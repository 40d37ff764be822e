"""
Configuration Tests
"""

import pytest

from entity_graph.config import AdapterConfig, GraphConfig, LayoutConfig


class TestDefaults:

    def test_graph_config_composes_sections(self):
        config = GraphConfig()
        assert config.adapters.default_strength == 0.5
        assert config.layout.alpha_decay == 0.0228
        assert config.tools.default_top_k == 5
        assert config.dataset_path is None

    def test_nested_strengths_from_tightness(self):
        primary, secondary = LayoutConfig().nested_strengths()
        assert primary == pytest.approx(0.2)
        assert secondary == pytest.approx(0.3)

    def test_explicit_nested_strengths_win(self):
        config = LayoutConfig(primary_strength=0.05, tightness=1.0)
        assert config.nested_strengths() == (0.05, pytest.approx(0.6))

    def test_explicit_section_kept(self):
        adapters = AdapterConfig(similarity_threshold=0.8)
        assert GraphConfig(adapters=adapters).adapters is adapters


class TestFromEnv:

    def test_overrides(self):
        config = GraphConfig.from_env({
            "ENTITY_GRAPH_DATASET": "/data/bundle.json",
            "ENTITY_GRAPH_LAYOUT_CHARGE": "-60",
            "ENTITY_GRAPH_LAYOUT_SEED": "7",
            "ENTITY_GRAPH_TOOLS_PREVIEW_LIMIT": "20",
        })
        assert config.dataset_path == "/data/bundle.json"
        assert config.layout.charge == -60.0
        assert config.layout.seed == 7
        assert config.tools.preview_limit == 20

    def test_none_rejects_missing_weights(self):
        config = GraphConfig.from_env({"ENTITY_GRAPH_ADAPTERS_DEFAULT_STRENGTH": "none"})
        assert config.adapters.default_strength is None

    def test_unset_optional_parses_as_float(self):
        config = GraphConfig.from_env({"ENTITY_GRAPH_LAYOUT_PRIMARY_STRENGTH": "0.25"})
        assert config.layout.primary_strength == 0.25

    def test_bad_number(self):
        with pytest.raises(ValueError, match="ENTITY_GRAPH_LAYOUT_CHARGE must be numeric"):
            GraphConfig.from_env({"ENTITY_GRAPH_LAYOUT_CHARGE": "strong"})

    def test_unrelated_variables_ignored(self):
        config = GraphConfig.from_env({"HOME": "/root", "ENTITY_GRAPH_UNKNOWN": "1"})
        assert config.to_dict() == GraphConfig().to_dict()
