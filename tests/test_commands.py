"""Tests for the command layer: result wrapping, dispatch and storage commands."""

import json
import threading

import pytest

from tempusring.commands import COMMAND_NAMES, Backend, CommandResult, TimerTickData
from tempusring.settings import Preferences
from tempusring.timer.engine import TimerConfig, TimerPhase, TimerSnapshot


class TestCommandResult:

    def test_ok(self):
        r = CommandResult.ok(5)
        assert r.success is True
        assert r.data == 5
        assert r.error is None

    def test_failure(self):
        r = CommandResult.failure("nope")
        assert r.success is False
        assert r.data is None
        assert r.error == "nope"

    def test_to_dict_flattens_snapshots(self, backend):
        payload = backend.start_timer().to_dict()
        assert payload["success"] is True
        assert payload["error"] is None
        assert payload["data"]["state"] == "work"
        assert payload["data"]["remaining_time"] == 1500
        json.dumps(payload)

    def test_to_dict_flattens_lists(self, backend, stats_store):
        backend.save_statistic({
            "id": "stat_2024-03-05", "date": "2024-03-05",
            "completed_pomodoros": 1, "total_work_time": 1500,
            "total_break_time": 0, "sessions": [],
        })
        payload = backend.load_statistics().to_dict()
        assert payload["data"][0]["date"] == "2024-03-05"


class TestTimerCommands:

    def test_start_returns_snapshot(self, backend):
        r = backend.start_timer()
        assert r.success
        assert isinstance(r.data, TimerSnapshot)
        assert r.data.state == TimerPhase.WORK

    def test_illegal_transition_is_a_failure(self, backend):
        backend.start_timer()
        r = backend.start_timer()
        assert not r.success
        assert r.error == "Cannot start timer in current state: work"

    def test_pause_from_idle_fails(self, backend):
        r = backend.pause_timer()
        assert not r.success
        assert r.error == "Cannot pause timer in current state: idle"

    def test_pause_and_resume(self, backend, clock):
        backend.start_timer()
        clock.advance(100)
        paused = backend.pause_timer().data
        assert paused.state == TimerPhase.PAUSED
        assert paused.remaining_time == 1400
        clock.advance(500)
        resumed = backend.start_timer().data
        assert resumed.state == TimerPhase.WORK
        assert resumed.remaining_time == 1400

    def test_reset(self, backend):
        backend.start_timer()
        r = backend.reset_timer()
        assert r.success
        assert r.data.state == TimerPhase.IDLE
        assert r.data.current_session is None

    def test_get_timer_state(self, backend):
        r = backend.get_timer_state()
        assert r.success
        assert r.data.state == TimerPhase.IDLE
        assert r.data.sessions_until_long_break == 4

    def test_complete_session(self, backend):
        backend.start_timer()
        r = backend.complete_session()
        assert r.success
        assert r.data.completed_sessions == 1
        assert r.data.sessions_until_long_break == 3

    def test_check_completion_not_due(self, backend, clock):
        backend.start_timer()
        clock.advance(10)
        r = backend.check_timer_completion()
        assert r.success
        assert isinstance(r.data, TimerTickData)
        assert r.data.session_completed is False
        assert r.data.timer_data.remaining_time == 1490

    def test_check_completion_due(self, backend, clock):
        backend.start_timer()
        clock.advance(1500)
        r = backend.check_timer_completion()
        assert r.data.session_completed is True
        assert r.data.timer_data.state == TimerPhase.IDLE
        assert r.data.timer_data.completed_sessions == 1
        assert r.to_dict()["data"]["session_completed"] is True

    def test_check_completion_records_statistic(self, backend, clock, stats_store):
        backend.start_timer()
        clock.advance(1500)
        backend.check_timer_completion()
        stats = stats_store.query()
        assert len(stats) == 1
        assert stats[0].completed_pomodoros == 1
        assert stats[0].total_work_time == 1500

    def test_reset_records_abandoned_session(self, backend, clock, stats_store):
        backend.start_timer()
        clock.advance(30)
        backend.reset_timer()
        stats = stats_store.query()
        assert len(stats) == 1
        assert stats[0].completed_pomodoros == 0
        assert stats[0].sessions[0].completed is False

    def test_update_config_from_object(self, backend):
        r = backend.update_timer_config(TimerConfig(work_duration=60))
        assert r.success
        assert backend.get_timer_config().data.work_duration == 60

    def test_update_config_from_dict(self, backend):
        r = backend.update_timer_config({"work_duration": 120, "sessions_until_long_break": 2})
        assert r.success
        assert r.data.sessions_until_long_break == 2
        assert backend.get_timer_config().data == TimerConfig(
            work_duration=120, sessions_until_long_break=2,
        )

    @pytest.mark.parametrize("bad", [
        {"work_duration": 0},
        {"sessions_until_long_break": 0},
        {"short_break_duration": -5},
    ])
    def test_update_config_rejects_invalid(self, backend, bad):
        r = backend.update_timer_config(bad)
        assert not r.success
        assert r.error.startswith("Invalid timer config")
        assert backend.get_timer_config().data == TimerConfig()

    def test_poisoned_engine_reports_failure(self, backend, clock):
        clock.fail_next = True
        with pytest.raises(RuntimeError):
            backend.get_timer_state()
        r = backend.get_timer_state()
        assert not r.success
        assert r.error


class TestStorageCommands:

    def test_preferences_round_trip(self, backend):
        assert backend.load_preferences().data == Preferences()
        assert backend.save_preferences(Preferences(theme="nightfall")).success
        assert backend.load_preferences().data.theme == "nightfall"

    def test_save_preferences_from_dict(self, backend):
        assert backend.save_preferences({"volume": 0.2}).success
        assert backend.load_preferences().data.volume == pytest.approx(0.2)

    def test_load_preferences_corrupt_file(self, backend, prefs_store):
        prefs_store.path.write_text("garbage", encoding="utf-8")
        r = backend.load_preferences()
        assert not r.success
        assert r.error

    def test_save_statistic_rejects_bad_dict(self, backend):
        r = backend.save_statistic({"date": "2024-03-05"})
        assert not r.success
        assert r.error.startswith("Invalid statistic")

    def test_load_statistics_range(self, backend):
        for day in ("2024-03-04", "2024-03-05", "2024-03-06"):
            backend.save_statistic({
                "id": f"stat_{day}", "date": day, "completed_pomodoros": 0,
                "total_work_time": 0, "total_break_time": 0, "sessions": [],
            })
        r = backend.load_statistics("2024-03-05", "2024-03-06")
        assert [s.date for s in r.data] == ["2024-03-05", "2024-03-06"]

    def test_clear_statistics(self, backend, clock):
        backend.start_timer()
        backend.complete_session()
        assert backend.load_statistics().data
        assert backend.clear_statistics().success
        assert backend.load_statistics().data == []

    def test_storage_size(self, backend, clock):
        assert backend.get_storage_size().data == 0
        backend.save_preferences(Preferences())
        after_prefs = backend.get_storage_size().data
        assert after_prefs > 0
        backend.start_timer()
        backend.complete_session()
        assert backend.get_storage_size().data > after_prefs

    def test_export_backup_restore(self, backend, tmp_path):
        backend.save_preferences(Preferences(language="de"))
        backend.start_timer()
        backend.complete_session()
        exported = backend.export_data().data
        assert exported["preferences"]["language"] == "de"
        assert len(exported["statistics"]) == 1

        path = tmp_path / "backup.json"
        assert backend.backup_data(str(path)).success
        backend.clear_statistics()
        backend.save_preferences(Preferences())
        assert backend.restore_data(str(path)).success
        assert backend.load_preferences().data.language == "de"
        assert len(backend.load_statistics().data) == 1

    def test_restore_missing_file(self, backend, tmp_path):
        r = backend.restore_data(str(tmp_path / "nope.json"))
        assert not r.success
        assert "Cannot read backup" in r.error


class TestDispatch:

    def test_command_names(self):
        assert set(COMMAND_NAMES) == {
            "start_timer", "pause_timer", "reset_timer", "get_timer_state",
            "update_timer_config", "get_timer_config", "complete_session",
            "check_timer_completion", "load_preferences", "save_preferences",
            "save_statistic", "load_statistics", "clear_statistics",
            "get_storage_size", "export_data", "backup_data", "restore_data",
            "get_daily_statistics", "get_weekly_statistics", "get_monthly_statistics",
            "get_statistics_range", "get_total_statistics",
        }

    def test_dispatch_by_name(self, backend):
        r = backend.dispatch("start_timer")
        assert r.success
        assert r.data.state == TimerPhase.WORK

    def test_dispatch_with_arguments(self, backend):
        r = backend.dispatch("update_timer_config", config={"work_duration": 90})
        assert r.success
        assert backend.dispatch("get_timer_config").data.work_duration == 90

    @pytest.mark.parametrize("name", ["explode", "dispatch", "_locked", "engine"])
    def test_unknown_command(self, backend, name):
        r = backend.dispatch(name)
        assert not r.success
        assert r.error == f"Unknown command: {name}"

    def test_bad_arguments(self, backend):
        r = backend.dispatch("start_timer", force=True)
        assert not r.success
        assert r.error.startswith("Invalid arguments for start_timer")

    def test_missing_arguments(self, backend):
        r = backend.dispatch("backup_data")
        assert not r.success
        assert r.error.startswith("Invalid arguments for backup_data")


class TestFromDataDir:

    def test_uses_saved_preferences(self, tmp_path, clock):
        backend = Backend.from_data_dir(tmp_path, clock=clock, wall_clock=clock.wall)
        backend.save_preferences(Preferences(work_duration=600, sessions_until_long_break=2))

        reopened = Backend.from_data_dir(tmp_path, clock=clock, wall_clock=clock.wall)
        config = reopened.get_timer_config().data
        assert config.work_duration == 600
        assert config.sessions_until_long_break == 2

    def test_corrupt_preferences_fall_back_to_defaults(self, tmp_path):
        (tmp_path / "preferences.json").write_text("{", encoding="utf-8")
        backend = Backend.from_data_dir(tmp_path)
        assert backend.get_timer_config().data == TimerConfig()

    def test_invalid_saved_durations_fall_back(self, tmp_path):
        (tmp_path / "preferences.json").write_text(
            json.dumps({"work_duration": 0}), encoding="utf-8",
        )
        backend = Backend.from_data_dir(tmp_path)
        assert backend.get_timer_config().data == TimerConfig()

    def test_defaults_to_app_data_dir(self, tmp_path):
        backend = Backend.from_data_dir()
        assert backend.preferences.path == tmp_path / "appdata" / "preferences.json"

    def test_wrong_typed_preferences_fall_back_at_startup(self, tmp_path):
        (tmp_path / "preferences.json").write_text(
            json.dumps({"work_duration": "25"}), encoding="utf-8",
        )
        backend = Backend.from_data_dir(tmp_path)
        assert backend.get_timer_config().data == TimerConfig()


class TestPreferenceValidation:

    @pytest.mark.parametrize("payload", [
        {"work_duration": 0},
        {"work_duration": "25"},
        {"sessions_until_long_break": 0},
        {"volume": 3},
    ])
    def test_save_rejects_invalid_preferences(self, backend, prefs_store, payload):
        r = backend.save_preferences(payload)
        assert not r.success
        assert r.error.startswith("Invalid preferences")
        assert not prefs_store.path.exists()

    def test_save_rejects_invalid_object(self, backend, prefs_store):
        r = backend.save_preferences(Preferences(long_break_duration=-1))
        assert not r.success
        assert not prefs_store.path.exists()

    def test_save_rejects_non_mapping(self, backend):
        r = backend.save_preferences([1, 2])
        assert not r.success


def _record(backend, day, pomodoros, flags=(True,)):
    backend.save_statistic({
        "id": f"stat_{day}", "date": day, "completed_pomodoros": pomodoros,
        "total_work_time": pomodoros * 1500, "total_break_time": 300,
        "sessions": [
            {"start_time": f"{day}T09:00:00", "end_time": f"{day}T09:25:00",
             "session_type": "work", "completed": flag}
            for flag in flags
        ],
    })


class TestSummaryCommands:

    def test_daily(self, backend):
        _record(backend, "2024-03-05", 2, flags=(True, False))
        r = backend.dispatch("get_daily_statistics", date="2024-03-05")
        assert r.success
        assert r.data.completed_pomodoros == 2
        assert r.data.efficiency == pytest.approx(50.0)
        assert r.to_dict()["data"]["total_sessions"] == 2

    def test_daily_without_data(self, backend):
        r = backend.dispatch("get_daily_statistics", date="2024-03-05")
        assert r.success
        assert r.data is None

    @pytest.mark.parametrize("bad", ["yesterday", "2024-13-01", ""])
    def test_daily_rejects_bad_date(self, backend, bad):
        r = backend.dispatch("get_daily_statistics", date=bad)
        assert not r.success
        assert r.error.startswith("Invalid date")

    def test_weekly(self, backend):
        _record(backend, "2024-03-04", 3)
        r = backend.dispatch("get_weekly_statistics", week_start="2024-03-03")
        assert r.success
        assert r.data.total_pomodoros == 3
        assert len(r.to_dict()["data"]["daily_breakdown"]) == 7

    def test_monthly(self, backend):
        _record(backend, "2024-03-04", 3)
        _record(backend, "2024-04-01", 5)
        r = backend.dispatch("get_monthly_statistics", year=2024, month=3)
        assert r.success
        assert r.data.month == "March"
        assert r.data.total_pomodoros == 3
        json.dumps(r.to_dict())

    @pytest.mark.parametrize("month", [0, 13, "3"])
    def test_monthly_rejects_bad_month(self, backend, month):
        r = backend.dispatch("get_monthly_statistics", year=2024, month=month)
        assert not r.success
        assert r.error.startswith("Invalid month")

    def test_range(self, backend):
        for day in ("2024-03-04", "2024-03-05", "2024-03-06"):
            _record(backend, day, 1)
        r = backend.dispatch(
            "get_statistics_range", from_date="2024-03-05", to_date="2024-03-06",
        )
        assert [d.date for d in r.data] == ["2024-03-05", "2024-03-06"]
        assert r.to_dict()["data"][0]["efficiency"] == pytest.approx(100.0)

    def test_total(self, backend):
        _record(backend, "2024-03-04", 3)
        _record(backend, "2024-03-05", 1)
        r = backend.dispatch("get_total_statistics")
        assert r.success
        assert r.data.total_pomodoros == 4
        assert r.data.total_days == 2
        assert r.data.average_pomodoros_per_day == pytest.approx(2.0)


class TestConcurrentCompletion:

    def test_each_session_recorded_once(self, clock, prefs_store, stats_store):
        from tempusring.recorder import SessionRecorder
        from tempusring.timer.engine import TimerEngine

        engine = TimerEngine(
            TimerConfig(auto_start_breaks=True), clock=clock, wall_clock=clock.wall,
        )
        backend = Backend(
            engine, prefs_store, stats_store,
            SessionRecorder(stats_store, now=clock.datetime),
        )
        backend.start_timer()

        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            for _ in range(5):
                assert backend.complete_session().success

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snapshot = backend.get_timer_state().data
        assert snapshot.completed_sessions == 20
        [stat] = stats_store.query()
        assert len(stat.sessions) == 40
        assert stat.completed_pomodoros == 20
        assert sum(s.session_type == "work" for s in stat.sessions) == 20
