"""几何特征提取模块，负责计算眼睛睁开比 (EAR) 和嘴巴张开比 (MAR)"""

import math
from typing import Sequence

from models.data_models import FeatureSample, Landmark, UsedLandmarks

# 关键点索引常量（MediaPipe FaceMesh 编号）
LEFT_EYE_INDICES = (33, 160, 158, 133, 153, 144)
RIGHT_EYE_INDICES = (263, 387, 385, 362, 380, 373)
# 上、下、左、右
MOUTH_INDICES = (13, 14, 78, 308)
NOSE_TIP_INDEX = 1


def eye_openness(landmarks: Sequence[Landmark], indices: Sequence[int]) -> float:
    """
    计算单只眼睛的 EAR 值。

    公式: EAR = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|)

    Args:
        landmarks: 整张脸的归一化 3D 关键点
        indices: 6 个眼睛轮廓关键点索引 (p1..p6)

    Returns:
        EAR 值，分母为零时返回 0.0
    """
    if len(indices) != 6:
        return 0.0

    p1, p2, p3, p4, p5, p6 = (landmarks[i] for i in indices)

    horizontal = math.dist(p1, p4)
    if horizontal == 0.0:
        return 0.0

    vertical_1 = math.dist(p2, p6)
    vertical_2 = math.dist(p3, p5)
    return (vertical_1 + vertical_2) / (2.0 * horizontal)


def mouth_openness(landmarks: Sequence[Landmark], indices: Sequence[int]) -> float:
    """
    计算 MAR 值。

    公式: MAR = |top-bottom| / |left-right|

    Args:
        landmarks: 整张脸的归一化 3D 关键点
        indices: (top, bottom, left, right) 四个索引

    Returns:
        MAR 值，分母为零时返回 0.0
    """
    if len(indices) != 4:
        return 0.0

    top, bottom, left, right = (landmarks[i] for i in indices)

    horizontal = math.dist(left, right)
    if horizontal == 0.0:
        return 0.0

    return math.dist(top, bottom) / horizontal


def extract_features(landmarks: Sequence[Landmark]) -> FeatureSample:
    """计算双眼平均 EAR、MAR 和鼻尖纵坐标"""
    left = eye_openness(landmarks, LEFT_EYE_INDICES)
    right = eye_openness(landmarks, RIGHT_EYE_INDICES)
    return FeatureSample(
        eye_openness=(left + right) / 2.0,
        mouth_openness=mouth_openness(landmarks, MOUTH_INDICES),
        nose_y=landmarks[NOSE_TIP_INDEX][1],
    )


def select_used_landmarks(landmarks: Sequence[Landmark]) -> UsedLandmarks:
    """提取参与计算的关键点子集"""
    return UsedLandmarks(
        left_eye=[landmarks[i] for i in LEFT_EYE_INDICES],
        right_eye=[landmarks[i] for i in RIGHT_EYE_INDICES],
        mouth=[landmarks[i] for i in MOUTH_INDICES],
        nose=landmarks[NOSE_TIP_INDEX],
    )
