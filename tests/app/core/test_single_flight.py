"""Tests for InFlightRegistry."""

from app.core.single_flight import InFlightRegistry


def test_second_claim_on_same_key_is_refused():
    registry = InFlightRegistry("sync")
    with registry.claim("a") as first:
        assert first is True
        with registry.claim("a") as second:
            assert second is False
        # the refused claim must not release the running one
        assert registry.is_in_flight("a")
    assert not registry.is_in_flight("a")


def test_different_keys_do_not_block_each_other():
    registry = InFlightRegistry("sync")
    with registry.claim("a") as a, registry.claim("b") as b:
        assert a and b
        assert len(registry) == 2
    assert len(registry) == 0


def test_key_released_when_body_raises():
    registry = InFlightRegistry("send")
    try:
        with registry.claim("a"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert registry.try_acquire("a") is True
