from __future__ import annotations

from conversation.manager import ConversationManager


def test_history_is_chronological_and_tagged():
    manager = ConversationManager()
    try:
        manager.save("s1", "user", "hello", domain="userCenter")
        manager.save("s1", "assistant", "hi there", domain="userCenter")
        manager.save("s2", "user", "other session")

        history = manager.get_history("s1")
    finally:
        manager.close()

    assert [(turn.role, turn.content) for turn in history] == [("user", "hello"), ("assistant", "hi there")]
    assert all(turn.domain == "userCenter" for turn in history)
    assert history[0].id != history[1].id


def test_history_is_trimmed_to_max_length():
    manager = ConversationManager(max_history_length=3)
    try:
        for index in range(5):
            manager.save("s1", "user", f"message {index}")
        contents = [turn.content for turn in manager.get_history("s1")]
    finally:
        manager.close()

    assert contents == ["message 2", "message 3", "message 4"]


def test_clear_session_only_affects_that_session():
    manager = ConversationManager()
    try:
        manager.save("s1", "user", "a")
        manager.save("s2", "user", "b")
        manager.clear_session("s1")

        assert manager.get_history("s1") == []
        assert len(manager.get_history("s2")) == 1
    finally:
        manager.close()
