from unittest.mock import patch

from salon_booking.core.config import Settings
from salon_booking.main import build_booking_service, build_store
from salon_booking.services.db_service import SupabaseBookingStore
from salon_booking.services.store import InMemoryBookingStore


def test_degraded_mode_never_in_production():
    assert Settings(ENVIRONMENT="development", DEGRADED_MODE_ENABLED=True).degraded_mode_allowed is True
    assert Settings(ENVIRONMENT="development", DEGRADED_MODE_ENABLED=False).degraded_mode_allowed is False
    assert Settings(ENVIRONMENT="production", DEGRADED_MODE_ENABLED=True).degraded_mode_allowed is False
    assert Settings(ENVIRONMENT="Production", DEGRADED_MODE_ENABLED=True).degraded_mode_allowed is False


def test_build_store_follows_backend_setting():
    with patch("salon_booking.main.settings", Settings(STORE_BACKEND="memory")):
        assert isinstance(build_store(), InMemoryBookingStore)
    with patch("salon_booking.main.settings", Settings(STORE_BACKEND="supabase")):
        assert isinstance(build_store(), SupabaseBookingStore)


def test_production_service_has_no_degraded_mode():
    with patch("salon_booking.main.settings", Settings(ENVIRONMENT="production", ANY_STYLIST_BLOCKS_SLOT=False)):
        service = build_booking_service(InMemoryBookingStore())

    assert service.degraded_mode is False
    assert service.any_stylist_blocks_slot is False


def test_degraded_mode_is_opt_in(monkeypatch):
    monkeypatch.delenv("DEGRADED_MODE_ENABLED", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    defaults = Settings(_env_file=None)

    assert defaults.ENVIRONMENT == "development"
    assert defaults.DEGRADED_MODE_ENABLED is False
    assert defaults.degraded_mode_allowed is False
