"""Tests for the reschedule coordinator."""

import asyncio
from datetime import date, datetime, timedelta

from conftest import (
    FakeAlarmFacility,
    FakePreferenceStore,
    FakeStateRepository,
    at,
)

from adhan_alarm.domain.events import RescheduleCompletedEvent, RescheduleFailedEvent
from adhan_alarm.domain.models import DEFAULT_ADHAN, FAJR_SOUND, PrayerName, RescheduleState
from adhan_alarm.infrastructure.event_bus import InMemoryEventBus
from adhan_alarm.services.alarm_scheduler import SLOT_IDENTITY
from adhan_alarm.services.reschedule_service import RescheduleCoordinator


def _registered(facility: FakeAlarmFacility) -> tuple[datetime, dict]:
    assert list(facility.registrations) == [SLOT_IDENTITY]
    return facility.registrations[SLOT_IDENTITY]


def _events(bus: InMemoryEventBus, event_type: type) -> list:
    return [e for e in bus.recent() if isinstance(e, event_type)]


class TestReschedulePass:
    """run_reschedule_pass tests."""

    def test_schedules_next_prayer(
        self, coordinator: RescheduleCoordinator, facility: FakeAlarmFacility, today: date
    ) -> None:
        alarm = asyncio.run(coordinator.request_reschedule())

        assert alarm is not None
        assert alarm.prayer is PrayerName.ASR
        assert alarm.trigger_at == at(today, 15, 45)
        assert alarm.sound == DEFAULT_ADHAN
        assert alarm.is_isha is False
        trigger_at, payload = _registered(facility)
        assert trigger_at == at(today, 15, 45)
        assert payload["prayer_name"] == "Asr"

    def test_idempotent(
        self, coordinator: RescheduleCoordinator, facility: FakeAlarmFacility
    ) -> None:
        """Test two passes with the same inputs leave one identical alarm."""
        first = asyncio.run(coordinator.request_reschedule())
        registered_first = _registered(facility)
        second = asyncio.run(coordinator.request_reschedule())

        assert first == second
        assert _registered(facility) == registered_first
        assert len(facility.get_pending()) == 1

    def test_fajr_uses_fajr_sound(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        clock["now"] = at(today, 3, 0)
        alarm = asyncio.run(coordinator.on_boot_or_time_change())
        assert alarm is not None
        assert alarm.prayer is PrayerName.FAJR
        assert alarm.sound == FAJR_SOUND

    def test_late_evening_schedules_tomorrow_fajr(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        clock["now"] = at(today, 23, 50)
        alarm = asyncio.run(coordinator.on_boot_or_time_change())

        assert alarm is not None
        assert alarm.prayer is PrayerName.FAJR
        assert alarm.trigger_at == at(today + timedelta(days=1), 5, 0)

    def test_isha_flag_set_for_isha(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        clock["now"] = at(today, 19, 0)
        alarm = asyncio.run(coordinator.request_reschedule())
        assert alarm is not None
        assert alarm.prayer is PrayerName.ISHA
        assert alarm.is_isha is True

    def test_success_clears_flag(
        self,
        coordinator: RescheduleCoordinator,
        state_repository: FakeStateRepository,
        event_bus: InMemoryEventBus,
    ) -> None:
        asyncio.run(coordinator.request_reschedule())

        assert state_repository.state.needs_reschedule is False
        assert state_repository.state.last_completed_at is not None
        assert state_repository.saves[0].needs_reschedule is True
        assert len(_events(event_bus, RescheduleCompletedEvent)) == 1


class TestAlarmFired:
    """on_alarm_fired tests."""

    def test_isha_fired_schedules_tomorrow_fajr(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        clock["now"] = at(today, 19, 45, 1)
        alarm = asyncio.run(coordinator.on_alarm_fired(PrayerName.ISHA, is_isha=True))

        assert alarm is not None
        assert alarm.prayer is PrayerName.FAJR
        assert alarm.trigger_at == at(today + timedelta(days=1), 5, 0)

    def test_early_isha_fire_does_not_reschedule_isha(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        """Test an alarm delivered seconds early still moves past Isha."""
        clock["now"] = at(today, 19, 44, 50)
        alarm = asyncio.run(coordinator.on_alarm_fired(PrayerName.ISHA, is_isha=True))

        assert alarm is not None
        assert alarm.prayer is PrayerName.FAJR
        assert alarm.trigger_at.date() == today + timedelta(days=1)

    def test_early_fire_moves_past_fired_prayer(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        clock["now"] = at(today, 15, 44, 58)
        alarm = asyncio.run(coordinator.on_alarm_fired(PrayerName.ASR))
        assert alarm is not None
        assert alarm.prayer is PrayerName.MAGHRIB

    def test_fired_label_far_from_now_is_ignored(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        """Test a stale fired prayer does not skip the real next prayer."""
        clock["now"] = at(today, 13, 0)
        alarm = asyncio.run(coordinator.on_alarm_fired(PrayerName.MAGHRIB))
        assert alarm is not None
        assert alarm.prayer is PrayerName.ASR

    def test_unknown_fired_prayer(
        self, coordinator: RescheduleCoordinator, clock: dict, today: date
    ) -> None:
        clock["now"] = at(today, 13, 0)
        alarm = asyncio.run(coordinator.on_alarm_fired(None))
        assert alarm is not None
        assert alarm.prayer is PrayerName.ASR


class TestFailures:
    """Failure handling tests."""

    def test_missing_location_keeps_flag(
        self,
        coordinator: RescheduleCoordinator,
        preference_store: FakePreferenceStore,
        state_repository: FakeStateRepository,
        facility: FakeAlarmFacility,
        event_bus: InMemoryEventBus,
    ) -> None:
        preference_store.values.clear()

        alarm = asyncio.run(coordinator.request_reschedule())

        assert alarm is None
        assert facility.registrations == {}
        assert state_repository.state.needs_reschedule is True
        failures = _events(event_bus, RescheduleFailedEvent)
        assert failures and failures[-1].capability_denied is False

    def test_capability_denied(
        self,
        coordinator: RescheduleCoordinator,
        state_repository: FakeStateRepository,
        facility: FakeAlarmFacility,
        event_bus: InMemoryEventBus,
    ) -> None:
        facility.exact = False

        alarm = asyncio.run(coordinator.request_reschedule())

        assert alarm is None
        assert state_repository.state.needs_reschedule is True
        assert _events(event_bus, RescheduleFailedEvent)[-1].capability_denied is True

    def test_recovers_on_next_trigger(
        self,
        coordinator: RescheduleCoordinator,
        preference_store: FakePreferenceStore,
        state_repository: FakeStateRepository,
    ) -> None:
        stored = dict(preference_store.values)
        preference_store.values.clear()
        asyncio.run(coordinator.request_reschedule())
        assert state_repository.state.needs_reschedule is True

        preference_store.values.update(stored)
        alarm = asyncio.run(coordinator.resume_if_pending())

        assert alarm is not None
        assert state_repository.state.needs_reschedule is False


class TestDisabledPrayers:
    """Prayers with their sound turned off."""

    def test_disabled_prayer_is_skipped(
        self,
        coordinator: RescheduleCoordinator,
        preference_store: FakePreferenceStore,
        clock: dict,
        today: date,
    ) -> None:
        preference_store.values["asr_sound_enabled"] = False
        clock["now"] = at(today, 13, 0)

        alarm = asyncio.run(coordinator.request_reschedule())

        assert alarm is not None
        assert alarm.prayer is PrayerName.MAGHRIB

    def test_disabled_fajr_rolls_to_dhuhr_tomorrow(
        self,
        coordinator: RescheduleCoordinator,
        preference_store: FakePreferenceStore,
        clock: dict,
        today: date,
    ) -> None:
        preference_store.values["fajr_sound_enabled"] = "false"
        clock["now"] = at(today, 23, 0)

        alarm = asyncio.run(coordinator.request_reschedule())

        assert alarm is not None
        assert alarm.prayer is PrayerName.DHUHR
        assert alarm.trigger_at == at(today + timedelta(days=1), 12, 30)

    def test_all_disabled_schedules_nothing(
        self,
        coordinator: RescheduleCoordinator,
        preference_store: FakePreferenceStore,
        facility: FakeAlarmFacility,
    ) -> None:
        first = asyncio.run(coordinator.request_reschedule())
        assert first is not None
        assert SLOT_IDENTITY in facility.registrations

        for prayer in PrayerName:
            preference_store.values[prayer.sound_enabled_key] = False

        alarm = asyncio.run(coordinator.request_reschedule())

        assert alarm is None
        assert facility.registrations == {}
        assert facility.get_pending() == []
        assert SLOT_IDENTITY in facility.cancelled


class TestPending:
    """resume_if_pending tests."""

    def test_nothing_pending(
        self, coordinator: RescheduleCoordinator, calculator, facility: FakeAlarmFacility
    ) -> None:
        assert asyncio.run(coordinator.resume_if_pending()) is None
        assert calculator.calls == []
        assert facility.registrations == {}

    def test_pending_is_completed(
        self,
        coordinator: RescheduleCoordinator,
        state_repository: FakeStateRepository,
        facility: FakeAlarmFacility,
    ) -> None:
        state_repository.state = RescheduleState(needs_reschedule=True)

        alarm = asyncio.run(coordinator.resume_if_pending())

        assert alarm is not None
        assert SLOT_IDENTITY in facility.registrations

    def test_trigger_in_background(
        self, coordinator: RescheduleCoordinator, facility: FakeAlarmFacility
    ) -> None:
        async def _run():
            task = coordinator.trigger_in_background()
            return await task

        alarm = asyncio.run(_run())
        assert alarm is not None
        assert SLOT_IDENTITY in facility.registrations

    def test_preview_does_not_schedule(
        self, coordinator: RescheduleCoordinator, facility: FakeAlarmFacility
    ) -> None:
        next_prayer = asyncio.run(coordinator.preview())
        assert next_prayer is not None
        assert next_prayer.prayer is PrayerName.ASR
        assert facility.registrations == {}
