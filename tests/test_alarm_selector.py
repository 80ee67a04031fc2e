"""告警选择模块单元测试"""

from unittest.mock import MagicMock, call

import pytest

from alarm.alarm_selector import AlarmController, LoggingAlarmPlayer, select_alarm
from models.data_models import AlarmClass, DriverState


class TestSelectAlarm:
    @pytest.mark.parametrize(
        "state, expected",
        [
            (DriverState.DROWSY, AlarmClass.CRITICAL),
            (DriverState.NODDING, AlarmClass.CRITICAL),
            (DriverState.YAWNING, AlarmClass.WARNING),
            (DriverState.TIRED, AlarmClass.CAUTION),
            (DriverState.NORMAL, AlarmClass.NONE),
            (DriverState.HAPPY, AlarmClass.NONE),
            (DriverState.CALIBRATING, AlarmClass.NONE),
        ],
    )
    def test_mapping(self, state, expected):
        assert select_alarm(state) is expected

    def test_every_state_mapped(self):
        for state in DriverState:
            assert isinstance(select_alarm(state), AlarmClass)


class TestAlarmController:
    def test_repeated_alarm_starts_once(self):
        player = MagicMock()
        controller = AlarmController(player)
        for _ in range(10):
            controller.update(AlarmClass.CRITICAL)
        player.start.assert_called_once_with(AlarmClass.CRITICAL)
        assert controller.current is AlarmClass.CRITICAL

    def test_none_stops_player(self):
        player = MagicMock()
        controller = AlarmController(player)
        controller.update(AlarmClass.WARNING)
        controller.update(AlarmClass.NONE)
        controller.update(AlarmClass.NONE)
        player.stop.assert_called_once_with()

    def test_none_when_idle_is_noop(self):
        player = MagicMock()
        controller = AlarmController(player)
        controller.update(AlarmClass.NONE)
        player.start.assert_not_called()
        player.stop.assert_not_called()

    def test_switch_class(self):
        player = MagicMock()
        controller = AlarmController(player)
        controller.update(AlarmClass.WARNING)
        controller.update(AlarmClass.CRITICAL)
        assert player.start.call_args_list == [call(AlarmClass.WARNING), call(AlarmClass.CRITICAL)]

    def test_cancel_stops_exactly_once(self):
        player = MagicMock()
        controller = AlarmController(player)
        controller.update(AlarmClass.CRITICAL)
        controller.cancel()
        controller.cancel()
        player.stop.assert_called_once_with()

    def test_no_emission_after_cancel(self):
        player = MagicMock()
        controller = AlarmController(player)
        controller.cancel()
        player.reset_mock()
        controller.update(AlarmClass.CRITICAL)
        player.start.assert_not_called()
        assert not controller.enabled

    def test_resume(self):
        player = MagicMock()
        controller = AlarmController(player)
        controller.update(AlarmClass.CRITICAL)
        controller.cancel()
        controller.resume()
        controller.update(AlarmClass.CRITICAL)
        assert player.start.call_count == 2


class TestLoggingAlarmPlayer:
    def test_idempotent(self, caplog):
        player = LoggingAlarmPlayer()
        player.start(AlarmClass.CRITICAL)
        player.start(AlarmClass.CRITICAL)
        assert caplog.text.count("告警开始") == 1
        player.stop()
        player.stop()
        assert player.current is AlarmClass.NONE
