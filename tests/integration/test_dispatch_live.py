"""Live dispatch tests against a configured model provider.

Skipped automatically when no API key is configured (see root conftest).
"""

import pytest

from whiteboard_ai import BoardObject, BoardState, Tier, dispatch_command


@pytest.mark.integration
@pytest.mark.slow
@pytest.mark.asyncio
async def test_create_red_circles():
    """A plain creation command is handled by the classifier tier."""
    result = await dispatch_command("create 5 red circles")

    assert result.tier == Tier.INTENT
    [request] = result.tool_calls
    assert request.name == "createShape"
    assert request.arguments["type"] == "circle"
    assert request.arguments["quantity"] == 5


@pytest.mark.integration
@pytest.mark.slow
@pytest.mark.asyncio
async def test_delete_matching_objects():
    """Deletion resolves targets against the board snapshot."""
    board = BoardState(
        objects=[
            BoardObject(id="c1", type="circle", x=100, y=100, radius=40, fill="#EF4444"),
            BoardObject(id="r1", type="rect", x=300, y=100, width=120, height=80, fill="#3B82F6"),
        ]
    )
    result = await dispatch_command("delete all circles", board)

    deleted = [i for r in result.tool_calls if r.name == "deleteObject" for i in r.arguments["objectIds"]]
    assert deleted == ["c1"]


@pytest.mark.integration
@pytest.mark.slow
@pytest.mark.asyncio
async def test_kanban_composition():
    """Creative commands produce a laid-out composition."""
    result = await dispatch_command("create a kanban board with three columns")

    assert result.tool_calls
    assert any(r.name == "createFrame" for r in result.tool_calls)
