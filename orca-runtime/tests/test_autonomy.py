"""Tests for action classification and the autonomy gate policy."""
from __future__ import annotations

import pytest

from orca_contracts import TaskMessage
from orca_runtime.autonomy import (
    DEFAULT_AUTONOMY_CONFIG,
    ClassificationRules,
    classify_action,
    determine_gate,
    resolve_autonomy_config,
    resolve_autonomy_level,
)
from orca_runtime.config import AgentConfig, DEFAULT_AGENTS, OrcaSettings, UserSettings
from orca_runtime.types import ActionClassification, AutonomyLevel, GateDecision


@pytest.fixture
def task(make_task):
    def _task(agent_id: str, prompt: str) -> TaskMessage:
        return TaskMessage.model_validate(make_task(agent_id, prompt))

    return _task


class TestClassifyAction:
    """Tests for classify_action."""

    def test_dangerous_wording_overrides_routine_agent(self, task):
        """Dangerous patterns win even for routine agents."""
        assert classify_action(task("researcher", "Delete all the old files")) == ActionClassification.DANGEROUS

    def test_force_flag_is_dangerous(self, task):
        assert classify_action(task("coder", "Run git push --force")) == ActionClassification.DANGEROUS

    @pytest.mark.parametrize(
        "prompt",
        [
            "DROP the users table",
            "truncate the log table",
            "rm -rf build/",
            "git reset --hard origin/main",
            "force push the branch",
            "remove all temporary branches",
        ],
    )
    def test_dangerous_patterns_are_case_insensitive(self, task, prompt):
        assert classify_action(task("researcher", prompt)) == ActionClassification.DANGEROUS

    def test_dangerous_words_need_word_boundaries(self, task):
        """'dropdown' does not contain the word 'drop'."""
        assert classify_action(task("researcher", "Explain the dropdown component")) == ActionClassification.ROUTINE

    def test_significant_agent_without_wording(self, task):
        assert classify_action(task("coder", "Look at the parser")) == ActionClassification.SIGNIFICANT

    def test_significant_wording_on_unlisted_agent(self, task):
        assert classify_action(task("architect", "Implement a cache layer")) == ActionClassification.SIGNIFICANT

    def test_significant_wording_outranks_routine_agent(self, task):
        """Significant wording outranks routine agent membership."""
        assert classify_action(task("reviewer", "Update the changelog")) == ActionClassification.SIGNIFICANT

    def test_routine_agent(self, task):
        assert classify_action(task("reviewer", "Review the diff")) == ActionClassification.ROUTINE

    def test_unknown_agent_defaults_to_routine(self, task):
        assert classify_action(task("historian", "Summarise the history")) == ActionClassification.ROUTINE

    def test_declared_risk_promotes_agent(self, task):
        agents = {"deployer": AgentConfig(risk=ActionClassification.DANGEROUS)}
        assert classify_action(task("deployer", "Ship it"), agents) == ActionClassification.DANGEROUS

    def test_declared_risk_significant(self, task):
        agents = {"analyst": AgentConfig(risk="significant")}
        assert classify_action(task("analyst", "Look into it"), agents) == ActionClassification.SIGNIFICANT

    def test_declared_routine_does_not_mask_dangerous_wording(self, task):
        agents = {"helper": AgentConfig(risk=ActionClassification.ROUTINE)}
        assert classify_action(task("helper", "wipe the cache"), agents) == ActionClassification.DANGEROUS

    def test_custom_rules(self, task):
        rules = ClassificationRules(dangerous_agents=frozenset({"ops"}))
        assert classify_action(task("ops", "Check disk usage"), rules=rules) == ActionClassification.DANGEROUS

    def test_default_registry_has_no_declared_risk(self, task):
        assert classify_action(task("researcher", "Find the docs"), DEFAULT_AGENTS) == ActionClassification.ROUTINE


EXPECTED_GATES = {
    ("supervised", "routine"): "require_approval",
    ("supervised", "significant"): "require_approval",
    ("supervised", "dangerous"): "block",
    ("assisted", "routine"): "proceed",
    ("assisted", "significant"): "require_approval",
    ("assisted", "dangerous"): "block",
    ("autonomous", "routine"): "proceed",
    ("autonomous", "significant"): "proceed",
    ("autonomous", "dangerous"): "require_approval",
}


class TestDetermineGate:
    """Tests for determine_gate."""

    @pytest.mark.parametrize(("key", "expected"), sorted(EXPECTED_GATES.items()))
    def test_full_table(self, key, expected):
        level, classification = key
        assert determine_gate(level, classification) == GateDecision(expected)

    def test_accepts_enum_members(self):
        decision = determine_gate(AutonomyLevel.AUTONOMOUS, ActionClassification.DANGEROUS)
        assert decision is GateDecision.REQUIRE_APPROVAL

    @pytest.mark.parametrize("classification", ["routine", "significant", "dangerous"])
    def test_unknown_level_requires_approval(self, classification):
        assert determine_gate("reckless", classification) is GateDecision.REQUIRE_APPROVAL

    def test_unknown_classification_requires_approval(self):
        assert determine_gate("autonomous", "catastrophic") is GateDecision.REQUIRE_APPROVAL

    def test_dangerous_never_proceeds(self):
        for level in AutonomyLevel:
            assert determine_gate(level, ActionClassification.DANGEROUS) is not GateDecision.PROCEED


class TestResolveAutonomy:
    """Tests for autonomy resolution from user config and settings."""

    def test_defaults(self):
        assert resolve_autonomy_level() is AutonomyLevel.SUPERVISED
        assert resolve_autonomy_config() == DEFAULT_AUTONOMY_CONFIG

    def test_settings_used_when_user_config_silent(self):
        settings = OrcaSettings(autonomy="assisted", max_retries=5)
        config = resolve_autonomy_config(UserSettings(), settings)
        assert config.level is AutonomyLevel.ASSISTED
        assert config.max_retries == 5

    def test_user_config_wins(self):
        settings = OrcaSettings(autonomy="assisted", max_retries=5)
        user = UserSettings.model_validate({"autonomy": "autonomous", "maxRetries": 1})
        config = resolve_autonomy_config(user, settings)
        assert config.level is AutonomyLevel.AUTONOMOUS
        assert config.max_retries == 1

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("ORCA_AUTONOMY", "autonomous")
        assert resolve_autonomy_level(None, OrcaSettings()) is AutonomyLevel.AUTONOMOUS
