"""Tests for the route and layout CLI commands."""

import json
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent


def _run_cli(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, ".", *args],
        capture_output=True,
        text=True,
        cwd=PROJECT_ROOT,
        timeout=60,
    )


@pytest.mark.unit
def test_route_prints_decision():
    """route prints the decision as JSON without calling a model."""
    result = _run_cli("route", "delete all rectangles and create 5 stars", "--no-intent")
    assert result.returncode == 0
    assert json.loads(result.stdout) == {
        "tier": "orchestrate",
        "agent": None,
        "reason": "Multi-step operation detected",
    }


@pytest.mark.unit
def test_route_mini_agent():
    """route names the mini-agent for narrow commands."""
    result = _run_cli("route", "rotate the star 45 degrees", "--no-intent")
    assert result.returncode == 0
    assert json.loads(result.stdout)["agent"] == "MiniRotate"


@pytest.mark.unit
def test_layout_from_file(tmp_path):
    """layout converts a plan file into positioned requests."""
    plan_file = tmp_path / "plan.json"
    plan_file.write_text(
        json.dumps(
            {
                "title": "Ideas",
                "layout": "stack_horizontal",
                "children": [
                    {"type": "sticky", "text": "One", "color": "yellow"},
                    {"type": "sticky", "text": "Two", "color": "pink"},
                ],
            }
        ),
        encoding="utf-8",
    )
    result = _run_cli("layout", str(plan_file), "--explicit")
    assert result.returncode == 0

    requests = json.loads(result.stdout)
    stickies = [r for r in requests if r["name"] == "createStickyNote"]
    assert [s["arguments"]["color"] for s in stickies] == ["#FFF59D", "#F48FB1"]
    assert all(r["id"].startswith("plan_tc_") for r in requests)


@pytest.mark.unit
def test_unknown_command():
    """Unknown commands exit with an error."""
    result = _run_cli("paint")
    assert result.returncode == 1
