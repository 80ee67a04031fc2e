"""驾驶员状态判断模块"""

from collections import deque
from typing import Deque, List

from models.data_models import Baseline, DriverState, FeatureSample

# 鼻尖相对基线下移超过画面高度的 5% 视为点头
NODDING_DROP_THRESHOLD = 0.05
SMILE_MOUTH_THRESHOLD = 0.40
YAWN_MOUTH_THRESHOLD = 0.55
DROWSY_CONSEC_FRAMES = 15
TIRED_YAWN_COUNT = 3
YAWN_WINDOW_SECONDS = 120.0

TALKING_MOUTH_THRESHOLD = 0.5
SURPRISED_MOUTH_THRESHOLD = 0.75


def classify_expression(mouth_openness: float) -> str:
    """根据 MAR 粗略判断表情，仅用于展示"""
    expression = "Neutral"
    if mouth_openness > TALKING_MOUTH_THRESHOLD:
        expression = "Happy/Talking"
    if mouth_openness > SURPRISED_MOUTH_THRESHOLD:
        expression = "Surprised/Yawning"
    return expression


class DriverStateClassifier:
    """按优先级判断每帧状态，维护闭眼帧计数器和哈欠时间窗口"""

    def __init__(
        self,
        baseline: Baseline,
        drowsy_consec_frames: int = DROWSY_CONSEC_FRAMES,
        yawn_window_seconds: float = YAWN_WINDOW_SECONDS,
    ):
        self.baseline = baseline
        self.drowsy_consec_frames = drowsy_consec_frames
        self.yawn_window_seconds = yawn_window_seconds
        self._drowsy_frames = 0
        self._yawn_onsets: Deque[float] = deque()

    @property
    def drowsy_frames(self) -> int:
        return self._drowsy_frames

    @property
    def yawn_onsets(self) -> List[float]:
        return list(self._yawn_onsets)

    def classify(self, sample: FeatureSample, previous_state: DriverState, now: float) -> DriverState:
        """
        判断当前帧状态，先匹配者优先。

        优先级: 点头 > 闭眼(微笑/瞌睡) > 哈欠 > 正常，最后检查频繁哈欠。

        Args:
            sample: 当前帧特征
            previous_state: 上一次确认的状态
            now: 单调时钟秒数

        Returns:
            本帧状态
        """
        baseline = self.baseline
        state = DriverState.NORMAL

        # 基线为 0 时（校准失败）不做点头判断
        if baseline.nose_y and sample.nose_y - baseline.nose_y > NODDING_DROP_THRESHOLD:
            state = DriverState.NODDING
            self._drowsy_frames += 1
        elif sample.eye_openness < baseline.closed_eye_threshold:
            if sample.mouth_openness > SMILE_MOUTH_THRESHOLD:
                state = DriverState.HAPPY
                self._drowsy_frames = 0
            else:
                self._drowsy_frames += 1
                if self._drowsy_frames >= self.drowsy_consec_frames:
                    state = DriverState.DROWSY
        elif sample.mouth_openness > YAWN_MOUTH_THRESHOLD:
            state = DriverState.YAWNING
            # 只记录哈欠开始的时刻
            if previous_state is not DriverState.YAWNING:
                self._yawn_onsets.append(now)
            self._drowsy_frames = 0
        else:
            self._drowsy_frames = 0

        self._prune_yawns(now)

        if state is DriverState.NORMAL and len(self._yawn_onsets) >= TIRED_YAWN_COUNT:
            state = DriverState.TIRED

        return state

    def yawn_window_size(self, now: float) -> int:
        """返回时间窗口内的哈欠次数"""
        self._prune_yawns(now)
        return len(self._yawn_onsets)

    def _prune_yawns(self, now: float) -> None:
        while self._yawn_onsets and now - self._yawn_onsets[0] >= self.yawn_window_seconds:
            self._yawn_onsets.popleft()
