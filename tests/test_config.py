"""Tests for YAML configuration loading."""

import pytest

from agentteam import ConfigurationError, FunctionAgent, TeamBuilder, load_config
from agentteam.config import default_config


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config == default_config()
        assert config["team"]["global_timeout"] == 300.0
        assert config["tracing"]["enabled"] is False

    def test_defaults_are_copies(self):
        first = default_config()
        first["team"]["pattern"] = "concurrent"
        assert default_config()["team"]["pattern"] == "sequential"

    def test_user_values_merged_over_defaults(self, tmp_path):
        path = tmp_path / "agentteam_config.yaml"
        path.write_text(
            "team:\n"
            "  break_on_error: false\n"
            "  global_timeout: 45\n"
            "tracing:\n"
            "  enabled: true\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config["team"]["break_on_error"] is False
        assert config["team"]["global_timeout"] == 45
        assert config["team"]["pattern"] == "sequential"
        assert config["team"]["default_critical"] is True
        assert config["tracing"]["enabled"] is True

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == default_config()

    def test_unknown_sections_kept(self, tmp_path):
        path = tmp_path / "extra.yaml"
        path.write_text("deployment:\n  region: eu\n", encoding="utf-8")
        assert load_config(path)["deployment"] == {"region": "eu"}

    def test_topology_section_drives_builder(self, tmp_path):
        path = tmp_path / "agentteam_config.yaml"
        path.write_text(
            "team:\n"
            "  global_timeout: 60\n"
            "topologies:\n"
            "  review:\n"
            "    pattern: hybrid\n"
            "    children:\n"
            "      - {id: drafter, agent: drafter}\n"
            "      - {id: critic, agent: critic, critical: false, timeout: 30}\n"
            "    steps:\n"
            "      - {agents: [drafter]}\n"
            "      - {agents: [critic], dependencies: [0]}\n",
            encoding="utf-8",
        )
        registry = {
            "drafter": FunctionAgent(lambda s, i: "draft"),
            "critic": FunctionAgent(lambda s, i: "critique"),
        }
        config = load_config(path)
        topology = TeamBuilder.from_config(
            config["topologies"]["review"], registry, config["team"]
        ).build_config()

        assert topology.global_timeout == 60
        assert topology.child_ids() == ["drafter", "critic"]
        assert topology.get_child("critic").timeout == 30
        assert topology.pattern.steps[1].dependencies == (0,)


class TestFromFile:
    def _write(self, tmp_path, tracing):
        path = tmp_path / "agentteam_config.yaml"
        path.write_text(
            "team:\n"
            "  pattern: concurrent\n"
            "tracing:\n"
            f"  enabled: {'true' if tracing else 'false'}\n"
            "topologies:\n"
            "  pair:\n"
            "    children:\n"
            "      - {id: left, agent: echo}\n"
            "      - {id: right, agent: echo}\n",
            encoding="utf-8",
        )
        return path

    def test_tracing_enabled_reaches_executor(self, tmp_path):
        registry = {"echo": FunctionAgent(lambda s, i: "echo")}
        builder = TeamBuilder.from_file(self._write(tmp_path, True), "pair", registry)

        assert builder.build_executor().tracing is True
        assert builder.build().executor.tracing is True
        assert builder.build_config().child_ids() == ["left", "right"]

    def test_tracing_disabled(self, tmp_path):
        registry = {"echo": FunctionAgent(lambda s, i: "echo")}
        builder = TeamBuilder.from_file(self._write(tmp_path, False), "pair", registry)
        assert builder.build_executor().tracing is False

    def test_team_defaults_applied(self, tmp_path):
        registry = {"echo": FunctionAgent(lambda s, i: "echo")}
        config = TeamBuilder.from_file(self._write(tmp_path, False), "pair", registry).build_config()
        assert str(config.pattern) == "Concurrent"

    def test_unknown_topology(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Topology 'missing' not found"):
            TeamBuilder.from_file(self._write(tmp_path, False), "missing", {})
