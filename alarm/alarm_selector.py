"""告警选择模块：状态到告警等级的映射，以及对外部播放器的转发"""

import logging
from typing import Protocol

from models.data_models import AlarmClass, DriverState

logger = logging.getLogger(__name__)

_ALARM_BY_STATE = {
    DriverState.CALIBRATING: AlarmClass.NONE,
    DriverState.NORMAL: AlarmClass.NONE,
    DriverState.HAPPY: AlarmClass.NONE,
    DriverState.DROWSY: AlarmClass.CRITICAL,
    DriverState.NODDING: AlarmClass.CRITICAL,
    DriverState.YAWNING: AlarmClass.WARNING,
    DriverState.TIRED: AlarmClass.CAUTION,
}


def select_alarm(state: DriverState) -> AlarmClass:
    """根据当前确认状态返回告警等级"""
    return _ALARM_BY_STATE[state]


class AlarmPlayer(Protocol):
    """外部告警播放器接口，start/stop 均应幂等"""

    def start(self, alarm: AlarmClass) -> None:
        ...

    def stop(self) -> None:
        ...


class LoggingAlarmPlayer:
    """只写日志的播放器，声音合成由外部负责"""

    def __init__(self):
        self.current = AlarmClass.NONE

    def start(self, alarm: AlarmClass) -> None:
        if alarm is self.current:
            return
        self.current = alarm
        logger.warning("告警开始: %s", alarm.value)

    def stop(self) -> None:
        if self.current is AlarmClass.NONE:
            return
        logger.info("告警停止: %s", self.current.value)
        self.current = AlarmClass.NONE


class AlarmController:
    """每帧接收告警等级，只在等级变化时通知播放器"""

    def __init__(self, player: AlarmPlayer):
        self._player = player
        self._current = AlarmClass.NONE
        self._enabled = True

    @property
    def current(self) -> AlarmClass:
        return self._current

    @property
    def enabled(self) -> bool:
        return self._enabled

    def update(self, alarm: AlarmClass) -> None:
        """转发本帧告警等级，重复等级不会重复触发"""
        if not self._enabled or alarm is self._current:
            return
        if alarm is AlarmClass.NONE:
            self._player.stop()
        else:
            self._player.start(alarm)
        self._current = alarm

    def cancel(self) -> None:
        """停止监控：通知播放器停止一次，之后不再转发任何告警"""
        if not self._enabled:
            return
        self._enabled = False
        self._current = AlarmClass.NONE
        self._player.stop()

    def resume(self) -> None:
        self._enabled = True
