"""
Tests for StorageManager — registration, resolution, and the fallback scan.
"""

from unittest.mock import MagicMock

import pytest

from stowage.config import AdapterConfig, StorageManagerConfig
from stowage.faults import (
    AdapterDisabledFault,
    AdapterNotReadyFault,
    AdapterNotRegisteredFault,
    AdapterUnavailableFault,
    StorageConfigurationFault,
)
from stowage.manager import StorageManager


def make_config(*records, default=None, fallback=False):
    return StorageManagerConfig(
        adapters=[AdapterConfig(**record) for record in records],
        default_adapter=default,
        enable_fallback=fallback,
    )


# ============================================================================
# Registration
# ============================================================================


class TestRegisterFactory:

    def test_factory_called_with_config_record(self, make_stub):
        factory = MagicMock(side_effect=lambda cfg: make_stub("s3"))
        manager = StorageManager(make_config({"name": "s3", "config": {"bucket": "media"}}))

        result = manager.register_factory("s3", factory)

        assert result is manager
        factory.assert_called_once_with({"bucket": "media"})
        assert manager.has_adapter("s3")

    def test_factory_not_called_without_record(self, make_stub):
        factory = MagicMock(side_effect=lambda cfg: make_stub())
        manager = StorageManager()

        manager.register_factory("s3", factory)

        factory.assert_not_called()
        assert not manager.has_adapter("s3")
        with pytest.raises(AdapterNotRegisteredFault):
            manager.resolve("s3")

    def test_factory_not_called_for_disabled_record(self, make_stub):
        factory = MagicMock(side_effect=lambda cfg: make_stub())
        manager = StorageManager(make_config({"name": "s3", "enabled": False}))

        manager.register_factory("s3", factory)

        factory.assert_not_called()
        with pytest.raises(AdapterDisabledFault):
            manager.resolve("s3")

    def test_factory_error_is_logged_not_raised(self, caplog):
        def broken(cfg):
            raise RuntimeError("bad credentials")

        manager = StorageManager(make_config({"name": "s3"}))
        with caplog.at_level("ERROR", logger="stowage.manager"):
            manager.register_factory("s3", broken)

        assert "bad credentials" in caplog.text
        assert not manager.has_adapter("s3")
        with pytest.raises(AdapterNotRegisteredFault):
            manager.resolve("s3")

    def test_non_callable_factory_rejected(self):
        with pytest.raises(TypeError):
            StorageManager().register_factory("s3", "nope")

    def test_record_priority_applied(self, make_stub):
        manager = StorageManager(make_config({"name": "s3", "priority": 7}))
        manager.register_factory("s3", lambda cfg: make_stub("s3"))
        assert manager.get_registration("s3").priority == 7


class TestRegisterInstance:

    def test_resolve_returns_same_instance(self, make_stub):
        adapter = make_stub("a")
        manager = StorageManager().register_instance("a", adapter)
        assert manager.resolve("a") is adapter

    def test_names_are_case_insensitive(self, make_stub):
        adapter = make_stub("media")
        manager = StorageManager().register_instance("Media", adapter)
        assert manager.resolve("MEDIA") is adapter
        assert manager.available_adapters() == ["media"]
        assert "mEdIa" in manager

    def test_rejects_non_adapters(self):
        with pytest.raises(TypeError):
            StorageManager().register_instance("a", object())

    def test_disabled_record_applies_to_instance(self, make_stub):
        manager = StorageManager(make_config({"name": "a", "enabled": False}))
        manager.register_instance("a", make_stub("a"))
        with pytest.raises(AdapterDisabledFault):
            manager.resolve("a")
        assert manager.available_adapters() == []

    def test_reregistration_replaces_instance_keeps_position(self, make_stub):
        first, second, replacement = make_stub("a"), make_stub("b"), make_stub("a2")
        manager = StorageManager()
        manager.register_instance("a", first)
        manager.register_instance("b", second)
        manager.register_instance("a", replacement)

        assert manager.resolve("a") is replacement
        assert manager.available_adapters() == ["a", "b"]


# ============================================================================
# Resolution
# ============================================================================


class TestResolve:

    def test_unknown_name(self):
        with pytest.raises(AdapterNotRegisteredFault) as exc_info:
            StorageManager().resolve("ghost")
        assert exc_info.value.adapter_name == "ghost"
        assert "not registered" in exc_info.value.message

    def test_not_ready(self, make_stub):
        manager = StorageManager().register_instance("a", make_stub("a", ready=False))
        with pytest.raises(AdapterNotReadyFault):
            manager.resolve("a")

    def test_readiness_checked_at_call_time(self, make_stub):
        adapter = make_stub("a")
        manager = StorageManager().register_instance("a", adapter)

        assert manager.is_adapter_ready("a") is True
        adapter.ready = False
        assert manager.is_adapter_ready("a") is False
        with pytest.raises(AdapterNotReadyFault):
            manager.resolve("a")
        adapter.ready = True
        assert manager.resolve("a") is adapter

    def test_unavailability_faults_share_base(self):
        assert issubclass(AdapterDisabledFault, AdapterNotRegisteredFault)
        assert issubclass(AdapterNotRegisteredFault, AdapterUnavailableFault)
        assert issubclass(AdapterNotReadyFault, AdapterUnavailableFault)
        assert issubclass(AdapterUnavailableFault, StorageConfigurationFault)


class TestResolveDefault:

    def test_configured_default(self, make_stub):
        a, b = make_stub("a"), make_stub("b")
        manager = StorageManager(make_config(default="b"))
        manager.register_instance("a", a).register_instance("b", b)
        assert manager.resolve_default() is b

    def test_first_registered_without_default(self, make_stub):
        a, b = make_stub("a"), make_stub("b")
        manager = StorageManager().register_instance("b", b).register_instance("a", a)
        assert manager.resolve_default() is b

    def test_empty_registry(self):
        with pytest.raises(StorageConfigurationFault, match="No storage adapters"):
            StorageManager().resolve_default()

    def test_default_not_ready_raises(self, make_stub):
        manager = StorageManager(make_config(default="a"))
        manager.register_instance("a", make_stub("a", ready=False))
        with pytest.raises(AdapterNotReadyFault):
            manager.resolve_default()


class TestResolveWithFallback:

    def test_preferred_when_ready(self, make_stub):
        a, b = make_stub("a"), make_stub("b")
        manager = StorageManager(make_config(default="b", fallback=True))
        manager.register_instance("a", a).register_instance("b", b)
        assert manager.resolve_with_fallback("a") is a

    def test_default_when_no_preferred(self, make_stub):
        a, b = make_stub("a"), make_stub("b")
        manager = StorageManager(make_config(default="b"))
        manager.register_instance("a", a).register_instance("b", b)
        assert manager.resolve_with_fallback() is b

    def test_disabled_fallback_raises_for_unready_preferred(self, make_stub):
        manager = StorageManager(make_config(fallback=False))
        manager.register_instance("a", make_stub("a", ready=False))
        manager.register_instance("b", make_stub("b"))
        with pytest.raises(AdapterNotReadyFault):
            manager.resolve_with_fallback("a")

    def test_disabled_fallback_raises_for_unknown_preferred(self, make_stub):
        manager = StorageManager().register_instance("b", make_stub("b"))
        with pytest.raises(AdapterNotRegisteredFault):
            manager.resolve_with_fallback("ghost")

    def test_disabled_fallback_raises_for_unready_default(self, make_stub):
        manager = StorageManager(make_config(default="a"))
        manager.register_instance("a", make_stub("a", ready=False))
        with pytest.raises(AdapterNotReadyFault):
            manager.resolve_with_fallback()

    def test_disabled_fallback_without_candidates_returns_none(self, make_stub):
        manager = StorageManager().register_instance("a", make_stub("a"))
        assert manager.resolve_with_fallback() is None

    def test_highest_priority_ready_adapter_wins(self, make_stub):
        config = make_config(
            {"name": "preferred", "priority": 10},
            {"name": "default", "priority": 9},
            {"name": "low", "priority": 1},
            {"name": "high", "priority": 5},
            {"name": "mid", "priority": 3},
            default="default",
            fallback=True,
        )
        manager = StorageManager(config)
        manager.register_instance("preferred", make_stub("preferred", ready=False))
        manager.register_instance("default", make_stub("default", ready=False))
        manager.register_instance("low", make_stub("low"))
        high = make_stub("high")
        manager.register_instance("high", high)
        manager.register_instance("mid", make_stub("mid"))

        assert manager.resolve_with_fallback("preferred") is high

    def test_priority_ties_follow_registration_order(self, make_stub):
        config = make_config(
            {"name": "b", "priority": 2},
            {"name": "a", "priority": 2},
            fallback=True,
        )
        manager = StorageManager(config)
        b, a = make_stub("b"), make_stub("a")
        manager.register_instance("b", b)
        manager.register_instance("a", a)

        assert manager.resolve_with_fallback("ghost") is b

        b.ready = False
        assert manager.resolve_with_fallback("ghost") is a

    def test_tie_order_ignores_config_order(self, make_stub):
        config = make_config(
            {"name": "a", "priority": 2},
            {"name": "b", "priority": 2},
            fallback=True,
        )
        manager = StorageManager(config)
        b, a = make_stub("b"), make_stub("a")
        manager.register_instance("b", b)
        manager.register_instance("a", a)
        assert manager.resolve_with_fallback() is b

    def test_disabled_primary_falls_back_to_backup(self, make_stub):
        config = make_config(
            {"name": "primary", "priority": 1, "enabled": False},
            {"name": "backup", "priority": 1},
            fallback=True,
        )
        manager = StorageManager(config)
        backup = make_stub("backup")
        manager.register_factory("primary", lambda cfg: make_stub("primary"))
        manager.register_factory("backup", lambda cfg: backup)

        assert manager.resolve_with_fallback("primary") is backup

    def test_disabled_adapters_skipped_in_scan(self, make_stub):
        config = make_config(
            {"name": "off", "priority": 100, "enabled": False},
            {"name": "on", "priority": 0},
            fallback=True,
        )
        manager = StorageManager(config)
        on = make_stub("on")
        manager.register_instance("off", make_stub("off"))
        manager.register_instance("on", on)
        assert manager.resolve_with_fallback() is on

    def test_nothing_available_returns_none(self, make_stub, caplog):
        manager = StorageManager(make_config(fallback=True))
        manager.register_instance("a", make_stub("a", ready=False))
        with caplog.at_level("WARNING", logger="stowage.manager"):
            assert manager.resolve_with_fallback("a") is None
        assert "No storage adapter available" in caplog.text

    def test_fallback_logs_warning(self, make_stub, caplog):
        manager = StorageManager(make_config(fallback=True))
        manager.register_instance("a", make_stub("a", ready=False))
        manager.register_instance("b", make_stub("b"))
        with caplog.at_level("WARNING", logger="stowage.manager"):
            manager.resolve_with_fallback("a")
        assert "fallback" in caplog.text

    def test_non_availability_errors_propagate(self, make_stub):
        broken = make_stub("a")
        broken.is_ready = MagicMock(side_effect=RuntimeError("probe failed"))
        manager = StorageManager(make_config(fallback=True))
        manager.register_instance("a", broken)
        manager.register_instance("b", make_stub("b"))
        with pytest.raises(RuntimeError, match="probe failed"):
            manager.resolve_with_fallback("a")

    def test_toggle_fallback(self, make_stub):
        manager = StorageManager()
        manager.register_instance("a", make_stub("a", ready=False))
        b = make_stub("b")
        manager.register_instance("b", b)

        with pytest.raises(AdapterNotReadyFault):
            manager.resolve_with_fallback("a")
        manager.set_fallback_enabled(True)
        assert manager.fallback_enabled is True
        assert manager.resolve_with_fallback("a") is b


# ============================================================================
# Mutation & lifecycle
# ============================================================================


class TestMutation:

    def test_remove_adapter_clears_default(self, make_stub):
        manager = StorageManager(make_config(default="a"))
        manager.register_instance("a", make_stub("a"))

        assert manager.remove_adapter("A") is True
        assert manager.default_adapter is None
        assert manager.remove_adapter("a") is False
        assert not manager.has_adapter("a")

    def test_set_default(self, make_stub):
        a = make_stub("a")
        manager = StorageManager().register_instance("a", a)
        manager.set_default("A")
        assert manager.default_adapter == "a"
        assert manager.resolve_default() is a

    def test_set_default_unknown(self):
        with pytest.raises(AdapterNotRegisteredFault):
            StorageManager().set_default("ghost")

    def test_clear(self, make_stub):
        manager = StorageManager(make_config(default="a"))
        manager.register_instance("a", make_stub("a"))
        manager.clear()
        assert len(manager) == 0
        assert manager.default_adapter is None
        assert manager.available_adapters() == []

    def test_introspection(self, make_stub):
        manager = StorageManager()
        manager.register_instance("a", make_stub("a"))
        manager.register_instance("b", make_stub("b", ready=False))
        assert manager.available_adapters() == ["a", "b"]
        assert manager.ready_adapters() == ["a"]
        assert manager.is_adapter_ready("b") is False
        assert manager.is_adapter_ready("ghost") is False
        assert "StorageManager" in repr(manager)


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_shutdown_calls_each_adapter_then_clears(self, make_stub):
        a, b = make_stub("a"), make_stub("b")
        manager = StorageManager().register_instance("a", a).register_instance("b", b)

        await manager.shutdown()

        assert a.shutdown_called and b.shutdown_called
        assert len(manager) == 0

    @pytest.mark.asyncio
    async def test_shutdown_error_logged_and_others_continue(self, make_stub, caplog):
        a, b = make_stub("a"), make_stub("b")

        async def broken():
            raise RuntimeError("close failed")

        a.shutdown = broken
        manager = StorageManager().register_instance("a", a).register_instance("b", b)

        with caplog.at_level("ERROR", logger="stowage.manager"):
            await manager.shutdown()

        assert "close failed" in caplog.text
        assert b.shutdown_called

    @pytest.mark.asyncio
    async def test_initialize_awaits_adapters(self, make_stub):
        a = make_stub("a")
        calls = []

        async def init():
            calls.append("a")

        a.initialize = init
        manager = StorageManager().register_instance("a", a)
        await manager.initialize()
        assert calls == ["a"]
