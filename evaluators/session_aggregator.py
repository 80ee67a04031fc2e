"""会话汇总模块：状态切换检测、计数器、告警日志和模拟心率"""

import logging
import random
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from evaluators.state_classifier import DROWSY_CONSEC_FRAMES, classify_expression
from models.data_models import AlertLogEntry, DriverState, FeatureSample, SessionStats

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 50
REPORT_LOG_ENTRIES = 10
HEART_RATE_MIN = 60
HEART_RATE_MAX = 100


def _wall_clock() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _describe_transition(state: DriverState, sample: FeatureSample, yawn_window_size: int) -> str:
    """生成切换日志的描述文字"""
    if state is DriverState.CALIBRATING:
        return "Calibrating"
    if state is DriverState.NORMAL:
        return "Back to Normal"
    if state is DriverState.DROWSY:
        return f"Eyes Closed ({sample.eye_openness:.2f})"
    if state is DriverState.NODDING:
        return "Head Nod Detected"
    if state is DriverState.YAWNING:
        return "Yawn Detected"
    if state is DriverState.TIRED:
        return f"Frequent Yawning ({yawn_window_size} in 2m)"
    if state is DriverState.HAPPY:
        return f"Smiling/Talking (MAR {sample.mouth_openness:.2f})"
    raise ValueError(f"未知状态: {state}")


class SessionAggregator:
    """持有确认状态和会话统计，只在状态变化时写日志，每帧更新统计"""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        self.state = DriverState.CALIBRATING
        self.stats = SessionStats()
        self._logs: List[AlertLogEntry] = []
        self._rng = rng or random.Random()
        self._clock = clock or _wall_clock
        self._closed_frames = 0

    @property
    def logs(self) -> List[AlertLogEntry]:
        """日志副本，最新的在前"""
        return list(self._logs)

    def recent_logs(self, limit: int = REPORT_LOG_ENTRIES) -> List[AlertLogEntry]:
        return self._logs[:limit]

    def snapshot(self) -> SessionStats:
        return replace(self.stats)

    def update_features(self, sample: FeatureSample) -> None:
        """刷新实时 EAR/MAR 和表情"""
        self.stats.ear = sample.eye_openness
        self.stats.mar = sample.mouth_openness
        self.stats.expression = classify_expression(sample.mouth_openness)

    def complete_calibration(self) -> AlertLogEntry:
        """校准结束，进入 NORMAL"""
        return self._transition(DriverState.NORMAL, "Calibration Complete")

    def record(
        self,
        next_state: DriverState,
        sample: FeatureSample,
        eyes_closed: bool,
        yawn_window_size: int = 0,
    ) -> Optional[AlertLogEntry]:
        """
        记录一帧分类结果。

        Args:
            next_state: 分类器给出的本帧状态
            sample: 本帧特征
            eyes_closed: 本帧 EAR 是否低于闭眼阈值
            yawn_window_size: 时间窗口内的哈欠次数

        Returns:
            状态发生切换时返回新日志，否则返回 None
        """
        self._count_blink(eyes_closed)

        entry = None
        if next_state is not self.state:
            entry = self._transition(
                next_state, _describe_transition(next_state, sample, yawn_window_size)
            )

        self._simulate_heart_rate()
        return entry

    def _transition(self, state: DriverState, details: str) -> AlertLogEntry:
        previous = self.state
        self.state = state

        if state in (DriverState.DROWSY, DriverState.NODDING):
            self.stats.drowsy_count += 1
        elif state is DriverState.YAWNING:
            self.stats.yawn_count += 1

        entry = AlertLogEntry(timestamp=self._clock(), type=state, details=details)
        self._logs.insert(0, entry)
        del self._logs[MAX_LOG_ENTRIES:]

        if state in (DriverState.DROWSY, DriverState.NODDING, DriverState.YAWNING, DriverState.TIRED):
            logger.warning("状态切换 %s -> %s: %s", previous.value, state.value, details)
        else:
            logger.info("状态切换 %s -> %s: %s", previous.value, state.value, details)
        return entry

    def _count_blink(self, eyes_closed: bool) -> None:
        """短暂闭眼后重新睁眼计为一次眨眼，持续闭眼属于瞌睡"""
        if eyes_closed:
            self._closed_frames += 1
            return
        if 0 < self._closed_frames < DROWSY_CONSEC_FRAMES:
            self.stats.blink_count += 1
        self._closed_frames = 0

    def _simulate_heart_rate(self) -> None:
        # 模拟值，与真实生理信号无关
        if self._rng.random() > 0.95:
            change = self._rng.randint(-1, 1)
            self.stats.heart_rate = min(
                HEART_RATE_MAX, max(HEART_RATE_MIN, self.stats.heart_rate + change)
            )
