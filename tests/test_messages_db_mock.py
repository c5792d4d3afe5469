"""Tests for chat message database operations with mocked Supabase."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from prd_tool.core.schemas_chat import MessageRole
from prd_tool.db.messages import TurnRepository


def _mock_supabase(data):
    """Supabase mock whose chained query builder returns ``data`` on execute()."""
    sb = MagicMock()
    chain = MagicMock()
    chain.execute.return_value = MagicMock(data=data)
    for method in ("select", "insert", "update", "eq", "order", "limit"):
        getattr(chain, method).return_value = chain
    sb.table.return_value = chain
    return sb, chain


def _row(prd_id, role="assistant", content="Hi", **overrides):
    row = {
        "id": str(uuid4()),
        "prd_id": str(prd_id),
        "role": role,
        "content": content,
        "prd_update_suggestion": None,
        "update_applied": False,
        "token_count": 1,
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestCreate:
    def test_inserts_payload(self):
        prd_id = uuid4()
        sb, chain = _mock_supabase(
            [_row(prd_id, content="## Goals", prd_update_suggestion="## Goals")]
        )

        turn = TurnRepository(sb).create(
            prd_id, MessageRole.ASSISTANT, "## Goals", 2, prd_update_suggestion="## Goals"
        )

        sb.table.assert_called_once_with("messages")
        payload = chain.insert.call_args[0][0]
        assert payload == {
            "prd_id": str(prd_id),
            "role": "assistant",
            "content": "## Goals",
            "prd_update_suggestion": "## Goals",
            "update_applied": False,
            "token_count": 2,
        }
        assert turn.prd_update_suggestion == "## Goals"

    def test_user_turn_with_suggestion_rejected(self):
        sb, chain = _mock_supabase([])

        with pytest.raises(ValueError):
            TurnRepository(sb).create(uuid4(), MessageRole.USER, "hi", 1, prd_update_suggestion="x")

        chain.insert.assert_not_called()

    def test_empty_insert_response_raises(self):
        sb, _ = _mock_supabase([])

        with pytest.raises(ValueError, match="No data returned"):
            TurnRepository(sb).create(uuid4(), MessageRole.USER, "hi", 1)


def test_get_scopes_to_prd():
    prd_id, message_id = uuid4(), uuid4()
    sb, chain = _mock_supabase([_row(prd_id, id=str(message_id))])

    turn = TurnRepository(sb).get(prd_id, message_id)

    assert turn.id == message_id
    chain.eq.assert_any_call("id", str(message_id))
    chain.eq.assert_any_call("prd_id", str(prd_id))


def test_get_missing_returns_none():
    sb, _ = _mock_supabase([])

    assert TurnRepository(sb).get(uuid4(), uuid4()) is None


def test_list_recent_queries_newest_and_returns_oldest_first():
    prd_id = uuid4()
    sb, chain = _mock_supabase(
        [_row(prd_id, content="newest"), _row(prd_id, role="user", content="older")]
    )

    turns = TurnRepository(sb).list_recent(prd_id, limit=2)

    chain.order.assert_called_once_with("created_at", desc=True)
    chain.limit.assert_called_once_with(2)
    assert [t.content for t in turns] == ["older", "newest"]


def test_list_for_prd_orders_by_created_at():
    prd_id = uuid4()
    sb, chain = _mock_supabase([_row(prd_id, role="user"), _row(prd_id)])

    turns = TurnRepository(sb).list_for_prd(prd_id)

    chain.order.assert_called_once_with("created_at")
    assert [t.role for t in turns] == [MessageRole.USER, MessageRole.ASSISTANT]


class TestMarkUpdateApplied:
    def test_sets_flag(self):
        prd_id, message_id = uuid4(), uuid4()
        sb, chain = _mock_supabase(
            [_row(prd_id, id=str(message_id), prd_update_suggestion="x", update_applied=True)]
        )

        turn = TurnRepository(sb).mark_update_applied(message_id)

        chain.update.assert_called_once_with({"update_applied": True})
        chain.eq.assert_called_once_with("id", str(message_id))
        assert turn.update_applied is True

    def test_missing_message_raises(self):
        sb, _ = _mock_supabase([])

        with pytest.raises(ValueError, match="Message not found"):
            TurnRepository(sb).mark_update_applied(uuid4())


def test_default_client_comes_from_get_supabase():
    with patch("prd_tool.db.messages.get_supabase") as mock_get:
        repo = TurnRepository()

    assert repo.supabase is mock_get.return_value
