"""基线校准模块，利用会话开始的若干帧学习个人 EAR 基线和鼻尖中立位置"""

import logging
import math
from typing import List, Optional

from models.data_models import Baseline, FeatureSample

logger = logging.getLogger(__name__)

CALIBRATION_FRAMES = 40
# 低于该值的 EAR 视为无效读数（如人脸丢失瞬间）
MIN_VALID_EYE_OPENNESS = 0.15
CLOSED_EYE_RATIO = 0.75


def compute_stats(values: list) -> dict:
    """
    计算一组数值的统计信息。

    Args:
        values: 非空浮点数列表

    Returns:
        {"mean": float, "std": float, "min": float, "max": float}
    """
    n = len(values)
    mean = sum(values) / n
    std = math.sqrt(sum((x - mean) ** 2 for x in values) / n)
    return {
        "mean": mean,
        "std": std,
        "min": min(values),
        "max": max(values),
    }


class BaselineCalibrator:
    """消耗固定数量的起始帧，输出个人基线和闭眼阈值。每个会话只运行一次。"""

    def __init__(self, total_frames: int = CALIBRATION_FRAMES):
        if total_frames <= 0:
            raise ValueError(f"校准帧数必须为正数: {total_frames}")
        self.total_frames = total_frames
        self._frames_left = total_frames
        self._eye_history: List[float] = []
        self._nose_history: List[float] = []
        self._baseline: Optional[Baseline] = None

    @property
    def frames_left(self) -> int:
        return self._frames_left

    @property
    def is_complete(self) -> bool:
        return self._baseline is not None

    @property
    def baseline(self) -> Optional[Baseline]:
        return self._baseline

    def add_sample(self, sample: FeatureSample) -> Optional[Baseline]:
        """
        输入一帧特征。

        无效帧同样消耗计数，保证校准时长有上限。

        Returns:
            本帧完成校准时返回 Baseline，否则返回 None
        """
        if self._baseline is not None:
            raise RuntimeError("校准已完成，不能重复校准")

        if sample.eye_openness > MIN_VALID_EYE_OPENNESS:
            self._eye_history.append(sample.eye_openness)
            self._nose_history.append(sample.nose_y)
        self._frames_left -= 1

        if self._frames_left > 0:
            return None

        self._baseline = self._compute_baseline()
        return self._baseline

    def _compute_baseline(self) -> Baseline:
        """按有效帧均值计算基线，无有效帧时基线为 0"""
        eye_mean = sum(self._eye_history) / (len(self._eye_history) or 1)
        nose_mean = sum(self._nose_history) / (len(self._nose_history) or 1)

        if self._eye_history:
            stats = compute_stats(self._eye_history)
            logger.info(
                "校准完成: 有效帧 %d/%d, EAR 均值 %.3f (std %.3f), 鼻尖 Y %.3f",
                len(self._eye_history),
                self.total_frames,
                stats["mean"],
                stats["std"],
                nose_mean,
            )
        else:
            logger.warning("校准期间没有有效帧，闭眼检测在本会话中不可用")

        return Baseline(
            eye_openness=eye_mean,
            closed_eye_threshold=eye_mean * CLOSED_EYE_RATIO,
            nose_y=nose_mean,
        )
