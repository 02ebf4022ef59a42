"""Tests for the in-process authentication session."""

import pytest

from app.application.sync import SIGNED_IN, SIGNED_OUT, AuthSession


def test_listeners_receive_sign_in_and_sign_out() -> None:
    session = AuthSession()
    received = []
    session.on_change(lambda event, user_id: received.append((event, user_id)))

    session.sign_in("user-1")
    session.sign_out()

    assert received == [(SIGNED_IN, "user-1"), (SIGNED_OUT, None)]
    assert session.current_user_id is None


def test_unsubscribe_is_idempotent() -> None:
    session = AuthSession("user-1")
    received = []
    unsubscribe = session.on_change(lambda event, user_id: received.append(event))

    unsubscribe()
    unsubscribe()
    session.sign_out()

    assert received == []
    assert session.listener_count == 0


def test_sign_in_requires_a_user() -> None:
    with pytest.raises(ValueError):
        AuthSession().sign_in("")
