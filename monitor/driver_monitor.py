"""驾驶员监控会话：特征提取 → 校准 → 状态分类 → 会话汇总 → 告警选择"""

import logging
import random
import time
from typing import Callable, List, Optional, Sequence, Tuple

from alarm.alarm_selector import AlarmController, AlarmPlayer, LoggingAlarmPlayer, select_alarm
from calibration.baseline_calibrator import CALIBRATION_FRAMES, BaselineCalibrator
from detectors.feature_extractor import extract_features, select_used_landmarks
from evaluators.session_aggregator import REPORT_LOG_ENTRIES, SessionAggregator
from evaluators.state_classifier import DriverStateClassifier
from models.data_models import (
    AlertLogEntry,
    Baseline,
    DriverState,
    FrameResult,
    Landmark,
    SessionStats,
)

logger = logging.getLogger(__name__)


class DriverMonitor:
    """
    一个监控会话的全部可变状态。

    process_frame 必须串行调用，上一帧处理完成前不能开始下一帧。
    """

    def __init__(
        self,
        alarm_player: Optional[AlarmPlayer] = None,
        reset_on_resume: bool = False,
        calibration_frames: int = CALIBRATION_FRAMES,
        on_stats: Optional[Callable[[SessionStats], None]] = None,
        on_log: Optional[Callable[[AlertLogEntry], None]] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], str]] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.reset_on_resume = reset_on_resume
        self.calibration_frames = calibration_frames
        self._alarm = AlarmController(alarm_player or LoggingAlarmPlayer())
        self._on_stats = on_stats
        self._on_log = on_log
        self._rng = rng
        self._clock = clock
        self._monotonic = monotonic
        self._active = False
        self._started = False
        self._new_session()

    def _new_session(self):
        self.calibrator = BaselineCalibrator(self.calibration_frames)
        self.classifier: Optional[DriverStateClassifier] = None
        self.aggregator = SessionAggregator(rng=self._rng, clock=self._clock)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def state(self) -> DriverState:
        return self.aggregator.state

    @property
    def baseline(self) -> Optional[Baseline]:
        return self.calibrator.baseline

    @property
    def alarm(self):
        return self._alarm.current

    @property
    def stats(self) -> SessionStats:
        return self.aggregator.snapshot()

    @property
    def logs(self) -> List[AlertLogEntry]:
        return self.aggregator.logs

    def report_input(self) -> Tuple[SessionStats, List[AlertLogEntry]]:
        """报告生成所需的统计快照和最近 10 条日志"""
        return self.aggregator.snapshot(), self.aggregator.recent_logs(REPORT_LOG_ENTRIES)

    def start(self):
        """开始或恢复监控"""
        if self._active:
            return
        if self._started and self.reset_on_resume:
            logger.info("恢复监控，重置会话状态并重新校准")
            self._new_session()
        self._active = True
        self._started = True
        self._alarm.resume()
        logger.info("监控已开始")

    def stop(self):
        """停止监控，立即停止告警"""
        if not self._active:
            return
        self._active = False
        self._alarm.cancel()
        logger.info("监控已停止")

    def process_frame(
        self,
        landmarks: Optional[Sequence[Landmark]],
        now: Optional[float] = None,
    ) -> Optional[FrameResult]:
        """
        处理一帧关键点。

        Args:
            landmarks: 第一张脸的归一化关键点；未检测到人脸时为 None 或空
            now: 单调时钟秒数，默认取当前时间

        Returns:
            FrameResult；监控未开启或没有人脸时返回 None（不改变任何状态）
        """
        if not self._active or not landmarks:
            return None

        if now is None:
            now = self._monotonic()

        sample = extract_features(landmarks)
        self.aggregator.update_features(sample)

        entry = None
        if self.classifier is None:
            baseline = self.calibrator.add_sample(sample)
            if baseline is not None:
                self.classifier = DriverStateClassifier(baseline)
                entry = self.aggregator.complete_calibration()
        else:
            next_state = self.classifier.classify(sample, self.aggregator.state, now)
            eyes_closed = sample.eye_openness < self.classifier.baseline.closed_eye_threshold
            entry = self.aggregator.record(
                next_state, sample, eyes_closed, self.classifier.yawn_window_size(now)
            )

        alarm = select_alarm(self.aggregator.state)
        self._alarm.update(alarm)

        stats = self.aggregator.snapshot()
        if entry is not None and self._on_log is not None:
            self._on_log(entry)
        if self._on_stats is not None:
            self._on_stats(stats)

        return FrameResult(
            state=self.aggregator.state,
            alarm=alarm,
            features=sample,
            stats=stats,
            used_landmarks=select_used_landmarks(landmarks),
            calibration_frames_left=self.calibrator.frames_left,
            baseline=self.calibrator.baseline,
            log_entry=entry,
        )
