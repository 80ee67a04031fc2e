"""核心数据模型定义"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

# 归一化 3D 关键点 (x, y, z)
Landmark = Tuple[float, float, float]


class DriverState(str, Enum):
    """驾驶员状态，每帧只有一个有效值"""
    CALIBRATING = "CALIBRATING"
    NORMAL = "NORMAL"
    DROWSY = "DROWSY"
    YAWNING = "YAWNING"
    TIRED = "TIRED"
    HAPPY = "HAPPY"
    NODDING = "NODDING"


class AlarmClass(str, Enum):
    """告警等级，由外部播放器决定如何发声"""
    NONE = "none"
    CRITICAL = "critical"
    WARNING = "warning"
    CAUTION = "caution"


@dataclass(frozen=True)
class FeatureSample:
    """单帧几何特征"""
    eye_openness: float
    mouth_openness: float
    nose_y: float


@dataclass(frozen=True)
class Baseline:
    """校准得到的个人基线，校准结束后不再变化"""
    eye_openness: float
    closed_eye_threshold: float
    nose_y: float


@dataclass
class SessionStats:
    """会话统计，计数器只增不减"""
    ear: float = 0.0
    mar: float = 0.0
    blink_count: int = 0
    yawn_count: int = 0
    drowsy_count: int = 0
    heart_rate: int = 78
    expression: str = "Neutral"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AlertLogEntry:
    """状态切换日志"""
    timestamp: str
    type: DriverState
    details: str

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "type": self.type.value, "details": self.details}


@dataclass
class UsedLandmarks:
    """实际参与计算的关键点子集，供调试叠加层使用"""
    left_eye: List[Landmark] = field(default_factory=list)
    right_eye: List[Landmark] = field(default_factory=list)
    mouth: List[Landmark] = field(default_factory=list)
    nose: Optional[Landmark] = None


@dataclass
class FrameResult:
    """单帧处理结果"""
    state: DriverState
    alarm: AlarmClass
    features: FeatureSample
    stats: SessionStats
    used_landmarks: UsedLandmarks
    calibration_frames_left: int
    baseline: Optional[Baseline] = None
    log_entry: Optional[AlertLogEntry] = None
