"""API Routes."""

from datetime import datetime, timedelta
from typing import Annotated

from babel.dates import format_date
from fastapi import APIRouter, Depends, HTTPException, status

from adhan_alarm import __version__
from adhan_alarm.api.dependencies import AppState, get_app_state
from adhan_alarm.api.schemas import (
    ApiResponse,
    CapabilitiesSchema,
    LocationSchema,
    NextPrayerSchema,
    PendingAlarmSchema,
    PlaybackStatusSchema,
    PlayRequest,
    PrayerTimeSchema,
    PrayerTimesSchema,
    PreferencesSchema,
    PreferencesUpdateSchema,
    RawPreferenceSchema,
    RescheduleStateSchema,
    ScheduledAlarmSchema,
    SystemStatusSchema,
)
from adhan_alarm.domain.models import AdhanSettings, CalculationMethod, PrayerName, ScheduledAlarm
from adhan_alarm.services.preferences import (
    KEY_ADHAN_VOLUME,
    KEY_CALCULATION_METHOD,
    KEY_LATITUDE,
    KEY_LONGITUDE,
    KEY_SELECTED_ADHAN,
    Absent,
    BooleanValue,
    NumberValue,
    TextValue,
    classify,
    read_settings,
)

router = APIRouter()


def _format_timedelta(td: timedelta) -> str:
    """Timedelta'yı okunabilir formata çevir."""
    total_seconds = max(int(td.total_seconds()), 0)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _alarm_schema(alarm: ScheduledAlarm) -> ScheduledAlarmSchema:
    return ScheduledAlarmSchema(
        prayer=alarm.prayer,
        display_name=alarm.prayer.display_name,
        sound=alarm.sound,
        trigger_at=alarm.trigger_at,
        is_isha=alarm.is_isha,
        slot_identity=alarm.slot_identity,
    )


def _reschedule_response(alarm: ScheduledAlarm | None, message: str) -> ApiResponse:
    if alarm is None:
        return ApiResponse(
            success=False,
            message="Alarm kurulamadı, bir sonraki tetikte tekrar denenecek.",
        )
    return ApiResponse(
        success=True,
        message=message,
        data=_alarm_schema(alarm).model_dump(mode="json"),
    )


async def _settings(state: AppState) -> AdhanSettings:
    return read_settings(await state.preference_store.load())


def _raw_schema(raw: object) -> RawPreferenceSchema:
    match classify(raw):
        case NumberValue(value=value):
            return RawPreferenceSchema(kind="number", value=value)
        case BooleanValue(value=value):
            return RawPreferenceSchema(kind="boolean", value=value)
        case TextValue(value=value):
            return RawPreferenceSchema(kind="text", value=value)
        case Absent():
            return RawPreferenceSchema(kind="absent")


# ============== State & Status ==============


@router.get("/status", response_model=SystemStatusSchema)
async def get_status(state: Annotated[AppState, Depends(get_app_state)]) -> SystemStatusSchema:
    """Sistem durumunu getir."""
    uptime = datetime.now() - state.started_at
    settings = await _settings(state)

    return SystemStatusSchema(
        version=__version__,
        uptime=str(uptime).split(".")[0],
        scheduler_running=getattr(state.alarm_facility, "is_running", True),
        pending_alarms_count=len(state.alarm_scheduler.get_pending()),
        location_configured=settings.coordinates is not None,
        audio_player=state.audio_player.__class__.__name__,
        preferences_path=str(state.preferences_path or ""),
        state_path=str(state.state_path or ""),
    )


@router.get("/capabilities", response_model=CapabilitiesSchema)
async def get_capabilities(
    state: Annotated[AppState, Depends(get_app_state)],
) -> CapabilitiesSchema:
    """Host yeteneklerini getir."""
    return CapabilitiesSchema(
        exact_alarms=state.alarm_scheduler.can_schedule_exact(),
        audio_player=state.audio_player.__class__.__name__,
        device_volume=state.device_volume.__class__.__name__,
        wake_lock=state.wake_lock.__class__.__name__,
        notifications=state.alert_presenter.uses_notify_send,
    )


# ============== Prayer Times ==============


@router.get("/times/today", response_model=PrayerTimesSchema)
async def get_today_times(state: Annotated[AppState, Depends(get_app_state)]) -> PrayerTimesSchema:
    """Bugünün namaz vakitlerini getir."""
    settings = await _settings(state)
    if settings.coordinates is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Konum ayarlanmamış.",
        )

    tz = state.prayer_service.timezone_for(settings.coordinates)
    now = datetime.now(tz)
    times = state.prayer_service.calculate(settings.coordinates, settings.method, now.date())

    prayers = [
        PrayerTimeSchema(
            name=prayer_time.name,
            display_name=prayer_time.name.display_name,
            icon=prayer_time.name.icon,
            time=prayer_time.time_str,
            sound_enabled=settings.is_sound_enabled(prayer_time.name),
        )
        for prayer_time in times.all_prayer_times()
    ]

    return PrayerTimesSchema(
        date=times.date,
        date_formatted=format_date(now, "d MMMM yyyy, EEEE", locale="tr_TR"),
        timezone=str(tz),
        method=settings.method,
        prayers=prayers,
    )


@router.get("/next", response_model=NextPrayerSchema)
async def get_next_prayer(state: Annotated[AppState, Depends(get_app_state)]) -> NextPrayerSchema:
    """Alarm kurulacak sıradaki vakti getir."""
    next_prayer = await state.coordinator.preview()
    if next_prayer is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sıradaki vakit hesaplanamadı. Konum ayarlı mı?",
        )

    now = datetime.now(next_prayer.at.tzinfo)
    return NextPrayerSchema(
        prayer=next_prayer.prayer,
        display_name=next_prayer.prayer.display_name,
        at=next_prayer.at,
        time=next_prayer.at.strftime("%H:%M"),
        is_isha=next_prayer.is_isha,
        countdown=_format_timedelta(next_prayer.at - now),
    )


# ============== Alarms ==============


@router.get("/alarms", response_model=list[PendingAlarmSchema])
async def get_alarms(state: Annotated[AppState, Depends(get_app_state)]) -> list[PendingAlarmSchema]:
    """Bekleyen uyandırmaları listele."""
    return [
        PendingAlarmSchema(slot_identity=slot_identity, run_time=run_time)
        for slot_identity, run_time in state.alarm_scheduler.get_pending()
    ]


@router.post("/alarms/cancel-all", response_model=ApiResponse)
async def cancel_all_alarms(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Tüm alarmları iptal et."""
    count = state.alarm_scheduler.cancel_all()
    return ApiResponse(
        success=True,
        message=f"{count} alarm iptal edildi.",
        data={"cancelled_count": count},
    )


# ============== Reschedule ==============


@router.get("/reschedule/state", response_model=RescheduleStateSchema)
async def get_reschedule_state(
    state: Annotated[AppState, Depends(get_app_state)],
) -> RescheduleStateSchema:
    """Yeniden planlama durumunu getir."""
    current = await state.coordinator.get_state()
    return RescheduleStateSchema(
        needs_reschedule=current.needs_reschedule,
        requested_at=current.requested_at,
        last_completed_at=current.last_completed_at,
    )


@router.post("/reschedule", response_model=ApiResponse)
async def reschedule(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Sıradaki alarmı yeniden kur."""
    alarm = await state.coordinator.request_reschedule()
    return _reschedule_response(alarm, "Alarm yeniden planlandı.")


@router.post("/reschedule/pending", response_model=ApiResponse)
async def resume_pending(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Yarım kalmış planlama varsa tamamla."""
    before = await state.coordinator.get_state()
    if not before.needs_reschedule:
        return ApiResponse(success=True, message="Bekleyen planlama yok.")
    alarm = await state.coordinator.resume_if_pending()
    return _reschedule_response(alarm, "Bekleyen planlama tamamlandı.")


@router.post("/system/time-changed", response_model=ApiResponse)
async def time_changed(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Saat ya da saat dilimi değişti."""
    alarm = await state.coordinator.on_boot_or_time_change()
    return _reschedule_response(alarm, "Saat değişikliği sonrası alarm yeniden kuruldu.")


# ============== Playback ==============


def _playback_status(state: AppState) -> PlaybackStatusSchema:
    session = state.playback.session
    return PlaybackStatusSchema(
        state=state.playback.state,
        is_playing=state.playback.is_playing(),
        prayer_name=session.prayer_name if session else None,
        sound_source=session.sound_source if session else None,
        volume=session.requested_volume if session else None,
    )


@router.get("/playback", response_model=PlaybackStatusSchema)
async def get_playback(state: Annotated[AppState, Depends(get_app_state)]) -> PlaybackStatusSchema:
    """Ezan çalma durumunu getir."""
    return _playback_status(state)


@router.post("/playback/play", response_model=PlaybackStatusSchema)
async def play(
    request: PlayRequest,
    state: Annotated[AppState, Depends(get_app_state)],
) -> PlaybackStatusSchema:
    """Ezan çal."""
    settings = await _settings(state)
    prayer = PrayerName.from_label(request.prayer_name)
    sound = request.sound_file or (
        settings.sound_for(prayer) if prayer else settings.selected_adhan
    )
    volume = request.volume if request.volume is not None else settings.volume

    session = await state.playback.play(request.prayer_name, sound, volume)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Ezan çalınamadı. Ses dosyası veya ses cihazını kontrol edin.",
        )
    return _playback_status(state)


@router.post("/playback/pause", response_model=ApiResponse)
async def pause(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Ezanı duraklat."""
    paused = await state.playback.pause()
    return ApiResponse(
        success=paused,
        message="Ezan duraklatıldı." if paused else "Çalan ezan yok.",
    )


@router.post("/playback/resume", response_model=ApiResponse)
async def resume(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Ezana devam et."""
    resumed = await state.playback.resume()
    return ApiResponse(
        success=resumed,
        message="Ezana devam ediliyor." if resumed else "Duraklatılmış ezan yok.",
    )


@router.post("/playback/stop", response_model=ApiResponse)
async def stop(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Ezanı durdur."""
    stopped = await state.playback.stop("user")
    return ApiResponse(
        success=True,
        message="Ezan durduruldu." if stopped else "Çalan ezan yok.",
    )


# ============== Preferences ==============


@router.get("/preferences", response_model=PreferencesSchema)
async def get_preferences(state: Annotated[AppState, Depends(get_app_state)]) -> PreferencesSchema:
    """Çözülmüş ayarları ve ham değerleri getir."""
    values = await state.preference_store.load()
    settings = read_settings(values)

    location = None
    if settings.coordinates is not None:
        location = LocationSchema(
            latitude=settings.coordinates.latitude,
            longitude=settings.coordinates.longitude,
        )

    return PreferencesSchema(
        location=location,
        calculation_method=settings.method,
        adhan_volume=settings.volume,
        selected_adhan=settings.selected_adhan,
        sound_enabled={prayer: settings.is_sound_enabled(prayer) for prayer in PrayerName},
        raw={key: _raw_schema(value) for key, value in values.items()},
    )


@router.put("/preferences", response_model=ApiResponse)
async def update_preferences(
    update: PreferencesUpdateSchema,
    state: Annotated[AppState, Depends(get_app_state)],
) -> ApiResponse:
    """Ayarları güncelle ve alarmı yeniden kur."""
    values: dict[str, object] = {}
    if update.location is not None:
        values[KEY_LATITUDE] = update.location.latitude
        values[KEY_LONGITUDE] = update.location.longitude
    if update.calculation_method is not None:
        values[KEY_CALCULATION_METHOD] = update.calculation_method.value
    if update.adhan_volume is not None:
        values[KEY_ADHAN_VOLUME] = update.adhan_volume
    if update.selected_adhan is not None:
        values[KEY_SELECTED_ADHAN] = update.selected_adhan
    for prayer, enabled in (update.sound_enabled or {}).items():
        values[prayer.sound_enabled_key] = enabled

    await state.preference_store.update(values)
    alarm = await state.coordinator.request_reschedule()

    return ApiResponse(
        success=True,
        message="Ayarlar güncellendi.",
        data={
            "updated": sorted(values),
            "alarm": _alarm_schema(alarm).model_dump(mode="json") if alarm else None,
        },
    )


# ============== Utility ==============


@router.get("/methods")
async def get_methods() -> list[dict[str, str]]:
    """Hesaplama metodlarını listele."""
    return [{"value": m.value, "display_name": m.display_name} for m in CalculationMethod]


@router.get("/prayers")
async def get_prayer_names() -> list[dict[str, str]]:
    """Namaz vakti isimlerini listele."""
    return [{"value": p.value, "display_name": p.display_name, "icon": p.icon} for p in PrayerName]


@router.get("/sounds")
async def get_sounds(state: Annotated[AppState, Depends(get_app_state)]) -> list[str]:
    """Ses dizinindeki ezanları listele."""
    return state.playback.sound_resolver.available_sounds()
