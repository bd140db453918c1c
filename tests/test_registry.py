import pytest

from registry import PromotionRegistry, maybe_await


async def trigger(context, cart, *, promotion, trigger_parameters):
    return True


def test_unknown_keys_resolve_to_none() -> None:
    registry = PromotionRegistry()

    assert registry.get_trigger("missing") is None
    assert registry.get_action("missing") is None


def test_registration_validates_plugins() -> None:
    registry = PromotionRegistry()

    with pytest.raises(ValueError, match="non-empty"):
        registry.register_trigger("", trigger)
    with pytest.raises(ValueError, match="callable"):
        registry.register_action("discount", "not a function")
    with pytest.raises(ValueError, match="cleanup"):
        registry.register_action("discount", trigger, cleanup=42)


def test_duplicate_keys_are_rejected() -> None:
    registry = PromotionRegistry()
    registry.register_trigger("coupon", trigger)

    with pytest.raises(ValueError, match="already registered"):
        registry.register_trigger("coupon", trigger)


def test_actions_keep_their_cleanup() -> None:
    registry = PromotionRegistry()

    def cleanup(context, cart):
        return None

    registry.register_action("discount", trigger, cleanup=cleanup)

    action = registry.get_action("discount")
    assert action.handler is trigger
    assert action.cleanup is cleanup


@pytest.mark.asyncio
async def test_maybe_await_accepts_plain_values() -> None:
    assert await maybe_await(3) == 3
    assert await maybe_await(trigger(None, None, promotion=None, trigger_parameters={})) is True
