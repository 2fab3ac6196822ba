"""Tests for the command router."""

import pytest

from ..agents import ANALYZE_AGENT, CREATE_AGENT, DELETE_AGENT, MINI_CREATE, MODIFY_AGENT, ORGANIZE_AGENT
from .lib import (
    ROUTE_RULES,
    Tier,
    detect_single_worker_agent,
    is_creation_command,
    requires_orchestration,
    route_command,
)


class TestRequiresOrchestration:
    """Tests for multi-step pattern detection."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command",
        [
            "create 3 circles connected by lines",
            "create two boxes with a connector",
            "delete all rectangles and create 5 stars",
            "clear the board then create a grid",
            "build a SWOT analysis",
            "run a retrospective",
            "set up a customer journey map",
            "create 20 notes and arrange them",
            "create 100 circles",
            "create 250 stars",
            "create 1000 dots",
        ],
    )
    def test_multi_step(self, command):
        """Sequencing, templates and 100+ batches need a plan."""
        assert requires_orchestration(command)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command",
        [
            "create 99 circles",
            "create 10 stars with 5 lemon lime color",
            "create 2 stars and color them green",
            "delete all circles",
        ],
    )
    def test_single_step(self, command):
        """Narrow commands, including create-with-color, stay out of orchestration."""
        assert not requires_orchestration(command)

    @pytest.mark.unit
    def test_creation_command(self):
        """Only a leading creation verb counts."""
        assert is_creation_command("  Draw a star")
        assert not is_creation_command("please create a star")
        assert not is_creation_command("address the notes")


class TestDetectSingleWorkerAgent:
    """Tests for the single-agent heuristic."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command,agent,reason",
        [
            ("create 5 circles", CREATE_AGENT, "Simple creation: 5 objects"),
            ("add a circle", CREATE_AGENT, "Single object creation"),
            ("change everything", MODIFY_AGENT, "Simple modification"),
            ("color all the notes pink", MODIFY_AGENT, "Bulk color change"),
            ("delete everything", DELETE_AGENT, "Simple deletion"),
            ("arrange everything neatly", ORGANIZE_AGENT, "Simple organization"),
            ("what is on the board", ANALYZE_AGENT, "Simple analysis"),
        ],
    )
    def test_detects(self, command, agent, reason):
        """Each heuristic names its agent and a reason."""
        assert detect_single_worker_agent(command) == (agent, reason)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command",
        [
            "create 250 circles",
            "clear the board and start again",
            "move the circle right and then delete it",
            "tell me a joke",
        ],
    )
    def test_no_match(self, command):
        """Large batches and sequenced commands get no single agent."""
        assert detect_single_worker_agent(command) is None


class TestRouteCommand:
    """Tests for tier selection precedence."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command",
        [
            "create 5 red circles",
            "create 3 circles connected by lines",
            "make 2 stars with green color",
            "delete all circles",
            "color these red",
        ],
    )
    def test_intent_first(self, command):
        """Creation commands and single-step commands go to the classifier."""
        decision = route_command(command)
        assert decision.tier == Tier.INTENT
        assert decision.agent is None

    @pytest.mark.unit
    def test_multi_step_skips_classifier(self):
        """Non-creation multi-step commands bypass the classifier."""
        decision = route_command("delete all rectangles and create 5 stars")
        assert decision.tier == Tier.ORCHESTRATE
        assert decision.reason == "Multi-step operation detected"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command,tier,agent",
        [
            ("create a solar system", Tier.COMPLEX, None),
            ("create a circle", Tier.MINI, MINI_CREATE),
            ("create 5 circles", Tier.SINGLE, CREATE_AGENT),
            ("create 150 circles", Tier.ORCHESTRATE, None),
            ("arrange everything neatly", Tier.SINGLE, ORGANIZE_AGENT),
            ("move the circle right and then delete it", Tier.ORCHESTRATE, None),
            ("tell me a joke", Tier.ORCHESTRATE, None),
        ],
    )
    def test_without_classifier(self, command, tier, agent):
        """With the classifier disabled the remaining rules apply in order."""
        decision = route_command(command, use_intent_classifier=False)
        assert decision.tier == tier
        assert decision.agent is agent

    @pytest.mark.unit
    def test_default_is_orchestrate(self):
        """Unmatched commands reach the terminal tier."""
        decision = route_command("tell me a joke", use_intent_classifier=False)
        assert decision.reason == "No fast path match, using orchestrator"

    @pytest.mark.unit
    def test_mini_reason_and_dict(self):
        """Mini decisions carry the agent and serialize its name."""
        decision = route_command("create a circle", use_intent_classifier=False)
        assert decision.to_dict() == {"tier": "mini", "agent": "MiniCreate", "reason": "Mini-agent: MiniCreate"}

    @pytest.mark.unit
    def test_rule_order(self):
        """The intent rule comes first and the single-agent rule last."""
        assert ROUTE_RULES[0].__name__ == "_intent_rule"
        assert ROUTE_RULES[-1].__name__ == "_single_rule"
