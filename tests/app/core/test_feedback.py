"""Tests for manual vs automatic feedback visibility."""

from app.constants.outreach import SyncTrigger
from app.core.feedback import AUTO_POLICY, MANUAL_POLICY, FeedbackPolicy


def test_policy_for_trigger():
    assert FeedbackPolicy.for_trigger(SyncTrigger.MANUAL) is MANUAL_POLICY
    assert FeedbackPolicy.for_trigger("auto") is AUTO_POLICY


def test_reconnect_is_always_visible():
    for policy in (MANUAL_POLICY, AUTO_POLICY):
        notice = policy.reconnect()
        assert notice.level == "error"
        assert "Reconnect" in notice.text


def test_manual_policy_surfaces_failures_and_empty_results():
    assert MANUAL_POLICY.failure("Gmail could not be reached.").level == "error"
    assert MANUAL_POLICY.nothing_new().text == "No new replies."


def test_auto_policy_stays_quiet():
    assert AUTO_POLICY.failure("Gmail could not be reached.") is None
    assert AUTO_POLICY.nothing_new() is None
    assert AUTO_POLICY.new_reply() is not None
