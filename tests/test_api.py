"""Tests for API routes."""

import json
import time
from pathlib import Path

import pytest
from conftest import (
    FakeAlarmFacility,
    FakeAudioPlayer,
    FakeCalculator,
    FakeDeviceVolume,
    FakePreferenceStore,
    FakeStateRepository,
    FakeWakeLock,
)
from fastapi.testclient import TestClient
from pydantic import ValidationError

from adhan_alarm.api.app import create_app
from adhan_alarm.api.dependencies import AppState, build_app_state, get_app_state
from adhan_alarm.api.schemas import LocationSchema, PlayRequest, PreferencesUpdateSchema
from adhan_alarm.domain.models import CalculationMethod, PrayerName
from adhan_alarm.infrastructure.device import InProcessAudioFocus
from adhan_alarm.infrastructure.notifications import AlertPresenter
from adhan_alarm.services.alarm_scheduler import SLOT_IDENTITY


@pytest.fixture
def app_state(
    preference_store: FakePreferenceStore,
    state_repository: FakeStateRepository,
    calculator: FakeCalculator,
    facility: FakeAlarmFacility,
    audio_player: FakeAudioPlayer,
    device_volume: FakeDeviceVolume,
    wake_lock: FakeWakeLock,
    audio_dir: Path,
) -> AppState:
    """Create app state backed by in-memory fakes."""
    return build_app_state(
        preference_store=preference_store,
        state_repository=state_repository,
        prayer_service=calculator,
        alarm_facility=facility,
        audio_player=audio_player,
        device_volume=device_volume,
        audio_focus=InProcessAudioFocus(),
        wake_lock=wake_lock,
        audio_dir=audio_dir,
        alert_presenter=AlertPresenter(use_notify_send=False),
    )


@pytest.fixture
def client(app_state: AppState) -> TestClient:
    """Test client without lifespan; routes use the fake state."""
    app = create_app()
    app.dependency_overrides[get_app_state] = lambda: app_state
    return TestClient(app)


class TestHealthEndpoint:
    """Health check endpoint tests."""

    def test_health_check(self) -> None:
        response = TestClient(create_app()).get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestLifespan:
    """Startup with the real adapters."""

    def test_boot_pass_schedules_in_background(self, tmp_path: Path, audio_dir: Path) -> None:
        preferences = tmp_path / "preferences.json"
        preferences.write_text(
            json.dumps({"latitude": 40.7128, "longitude": -74.006}), encoding="utf-8"
        )
        app = create_app(
            preferences_path=preferences,
            state_path=tmp_path / "state.json",
            audio_dir=audio_dir,
        )

        with TestClient(app) as client:
            alarms, state = [], {}
            for _ in range(50):
                alarms = client.get("/api/alarms").json()
                state = client.get("/api/reschedule/state").json()
                if alarms and state["last_completed_at"] is not None:
                    break
                time.sleep(0.1)

            assert [a["slot_identity"] for a in alarms] == [SLOT_IDENTITY]
            assert state["needs_reschedule"] is False
            assert client.get("/api/status").json()["scheduler_running"] is True


class TestApiSchemas:
    """Test API schema validation."""

    def test_location_schema_validation(self) -> None:
        loc = LocationSchema(latitude=41.0, longitude=29.0)
        assert loc.latitude == 41.0

    def test_location_schema_invalid_latitude(self) -> None:
        with pytest.raises(ValidationError):
            LocationSchema(latitude=91.0, longitude=29.0)

    def test_play_request_volume_range(self) -> None:
        assert PlayRequest().prayer_name == "Ezan"
        with pytest.raises(ValidationError):
            PlayRequest(volume=1.5)

    def test_empty_update_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PreferencesUpdateSchema()


class TestStatusEndpoints:
    """Status and capability endpoints."""

    def test_status(self, client: TestClient) -> None:
        response = client.get("/api/status")
        assert response.status_code == 200
        data = response.json()
        assert data["location_configured"] is True
        assert data["pending_alarms_count"] == 0
        assert data["audio_player"] == "FakeAudioPlayer"

    def test_capabilities(self, client: TestClient, facility: FakeAlarmFacility) -> None:
        facility.exact = False
        data = client.get("/api/capabilities").json()
        assert data["exact_alarms"] is False
        assert data["notifications"] is False


class TestPrayerTimesEndpoints:
    """Prayer time endpoints."""

    def test_today(self, client: TestClient) -> None:
        response = client.get("/api/times/today")
        assert response.status_code == 200
        data = response.json()
        assert data["timezone"] == "America/New_York"
        assert data["method"] == CalculationMethod.NORTH_AMERICA.value
        assert [p["time"] for p in data["prayers"]] == ["05:00", "12:30", "15:45", "18:20", "19:45"]
        assert all(p["sound_enabled"] for p in data["prayers"])

    def test_today_without_location(
        self, client: TestClient, preference_store: FakePreferenceStore
    ) -> None:
        preference_store.values.clear()
        assert client.get("/api/times/today").status_code == 409

    def test_next_does_not_schedule(self, client: TestClient, facility: FakeAlarmFacility) -> None:
        response = client.get("/api/next")
        assert response.status_code == 200
        assert response.json()["prayer"] in {p.value for p in PrayerName}
        assert facility.registrations == {}


class TestRescheduleEndpoints:
    """Alarm and reschedule endpoints."""

    def test_reschedule_and_cancel(self, client: TestClient, facility: FakeAlarmFacility) -> None:
        response = client.post("/api/reschedule")
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"]["slot_identity"] == SLOT_IDENTITY

        alarms = client.get("/api/alarms").json()
        assert [a["slot_identity"] for a in alarms] == [SLOT_IDENTITY]

        assert client.post("/api/alarms/cancel-all").json()["success"] is True
        assert facility.registrations == {}

    def test_reschedule_without_capability(
        self, client: TestClient, facility: FakeAlarmFacility
    ) -> None:
        facility.exact = False
        response = client.post("/api/reschedule")
        assert response.json()["success"] is False
        assert client.get("/api/reschedule/state").json()["needs_reschedule"] is True

    def test_pending_when_nothing_pending(self, client: TestClient) -> None:
        response = client.post("/api/reschedule/pending")
        assert response.json() == {
            "success": True,
            "message": "Bekleyen planlama yok.",
            "data": None,
        }

    def test_time_changed(self, client: TestClient, facility: FakeAlarmFacility) -> None:
        assert client.post("/api/system/time-changed").json()["success"] is True
        assert SLOT_IDENTITY in facility.registrations


class TestPlaybackEndpoints:
    """Playback endpoints."""

    def test_play_pause_stop(
        self, client: TestClient, audio_player: FakeAudioPlayer, device_volume: FakeDeviceVolume
    ) -> None:
        response = client.post(
            "/api/playback/play", json={"prayer_name": "Asr", "sound_file": "azan1", "volume": 0.5}
        )
        assert response.status_code == 200
        assert response.json()["state"] == "playing"
        assert audio_player.started[-1][1] == 50

        assert client.post("/api/playback/pause").json()["success"] is True
        assert client.get("/api/playback").json()["state"] == "paused"

        assert client.post("/api/playback/stop").json()["success"] is True
        assert client.get("/api/playback").json()["is_playing"] is False
        assert device_volume.volume == 40

    def test_play_failure(self, client: TestClient, audio_player: FakeAudioPlayer) -> None:
        audio_player.fail_on_start = RuntimeError("cihaz yok")
        assert client.post("/api/playback/play", json={}).status_code == 500

    def test_pause_without_session(self, client: TestClient) -> None:
        assert client.post("/api/playback/pause").json()["success"] is False


class TestPreferencesEndpoints:
    """Preference endpoints."""

    def test_get_preferences(self, client: TestClient) -> None:
        data = client.get("/api/preferences").json()
        assert data["location"] == {"latitude": 40.7128, "longitude": -74.006}
        assert data["calculation_method"] == "north_america"
        assert data["adhan_volume"] == 1.0
        assert data["raw"]["latitude"] == {"kind": "number", "value": 40.7128}
        assert data["raw"]["calculation_method"]["kind"] == "text"

    def test_update_preferences_reschedules(
        self,
        client: TestClient,
        preference_store: FakePreferenceStore,
        facility: FakeAlarmFacility,
    ) -> None:
        response = client.put(
            "/api/preferences",
            json={"adhan_volume": 0.5, "sound_enabled": {"asr": False}},
        )
        assert response.status_code == 200
        assert response.json()["data"]["updated"] == ["adhan_volume", "asr_sound_enabled"]
        assert preference_store.values["adhan_volume"] == 0.5
        assert preference_store.values["asr_sound_enabled"] is False
        assert SLOT_IDENTITY in facility.registrations

    def test_empty_update(self, client: TestClient) -> None:
        assert client.put("/api/preferences", json={}).status_code == 422


class TestUtilityEndpoints:
    """Listing endpoints."""

    def test_methods(self, client: TestClient) -> None:
        values = [m["value"] for m in client.get("/api/methods").json()]
        assert values == [m.value for m in CalculationMethod]

    def test_prayers(self, client: TestClient) -> None:
        assert len(client.get("/api/prayers").json()) == 5

    def test_sounds(self, client: TestClient) -> None:
        assert "azan1" in client.get("/api/sounds").json()
