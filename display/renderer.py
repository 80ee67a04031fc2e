"""界面渲染模块 - 在视频帧上绘制参与计算的关键点、状态指示和数值。"""

from typing import Optional

import cv2
import numpy as np

from evaluators.state_classifier import NODDING_DROP_THRESHOLD
from models.data_models import AlarmClass, DriverState, FrameResult


def format_value(v: float) -> str:
    """格式化浮点数为两位小数字符串。"""
    return f"{v:.2f}"


class DisplayRenderer:
    """在视频帧上绘制调试叠加层，只读取引擎结果，不反馈给引擎。"""

    # 状态指示颜色 (BGR)
    _STATE_COLORS = {
        DriverState.CALIBRATING: (255, 255, 255),
        DriverState.NORMAL: (157, 255, 0),
        DriverState.DROWSY: (85, 0, 255),
        DriverState.NODDING: (85, 0, 255),
        DriverState.YAWNING: (0, 204, 255),
        DriverState.TIRED: (0, 140, 255),
        DriverState.HAPPY: (180, 105, 255),
    }

    _EYE_COLOR = (157, 255, 0)
    _MOUTH_COLOR = (255, 204, 0)
    _MOUTH_YAWN_COLOR = (0, 204, 255)
    _NOSE_COLOR = (255, 255, 255)
    _NOSE_NOD_COLOR = (85, 0, 255)

    def render(self, frame: np.ndarray, result: Optional[FrameResult]) -> np.ndarray:
        """渲染检测结果到视频帧，返回渲染后的帧图像。"""
        output = frame.copy()

        if result is None:
            self._draw_text(output, "NO FACE", (10, 30), (200, 200, 200))
            return output

        self._draw_landmarks(output, result)
        self._draw_baseline(output, result)
        self._draw_info(output, result)

        if result.alarm is AlarmClass.CRITICAL:
            self._draw_warning(output, "WAKE UP!")

        return output

    @staticmethod
    def state_label(result: FrameResult) -> str:
        """状态指示文字，校准中显示剩余帧数"""
        if result.state is DriverState.CALIBRATING:
            return f"CALIBRATING {result.calibration_frames_left}"
        return result.state.value

    def _draw_landmarks(self, frame: np.ndarray, result: FrameResult) -> None:
        """绘制眼睛、嘴巴和鼻尖关键点。"""
        h, w = frame.shape[:2]
        used = result.used_landmarks

        for x, y, _ in used.left_eye + used.right_eye:
            cv2.circle(frame, (int(x * w), int(y * h)), 2, self._EYE_COLOR, -1)

        mouth_color = self._MOUTH_YAWN_COLOR if result.state is DriverState.YAWNING else self._MOUTH_COLOR
        for x, y, _ in used.mouth:
            cv2.circle(frame, (int(x * w), int(y * h)), 3, mouth_color, -1)

        if used.nose is not None:
            nose_color = self._NOSE_NOD_COLOR if result.state is DriverState.NODDING else self._NOSE_COLOR
            x, y = used.nose[0], used.nose[1]
            cv2.circle(frame, (int(x * w), int(y * h)), 4, nose_color, -1)

    def _draw_baseline(self, frame: np.ndarray, result: FrameResult) -> None:
        """校准完成后绘制点头判定线。"""
        if result.baseline is None or not result.baseline.nose_y:
            return
        h, w = frame.shape[:2]
        y = int((result.baseline.nose_y + NODDING_DROP_THRESHOLD) * h)
        cv2.line(frame, (0, y), (w, y), (85, 0, 255), 1)

    def _draw_info(self, frame: np.ndarray, result: FrameResult) -> None:
        """在左上角绘制状态、EAR、MAR 数值。"""
        color = self._STATE_COLORS.get(result.state, (255, 255, 255))
        lines = [
            (self.state_label(result), color),
            (f"EAR: {format_value(result.features.eye_openness)}", (0, 255, 0)),
            (f"MAR: {format_value(result.features.mouth_openness)}", (0, 255, 0)),
        ]
        y = 30
        for text, line_color in lines:
            self._draw_text(frame, text, (10, y), line_color)
            y += 30

    @staticmethod
    def _draw_text(frame: np.ndarray, text: str, origin: tuple, color: tuple) -> None:
        cv2.putText(frame, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)

    @staticmethod
    def _draw_warning(frame: np.ndarray, warning: str) -> None:
        """在画面中央显示红色大字体警告。"""
        h, w = frame.shape[:2]
        font_scale = 1.5
        thickness = 3
        (text_w, text_h), _ = cv2.getTextSize(
            warning, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness
        )
        x = (w - text_w) // 2
        y = (h + text_h) // 2
        cv2.putText(
            frame, warning, (x, y),
            cv2.FONT_HERSHEY_SIMPLEX, font_scale, (0, 0, 255), thickness,
        )
