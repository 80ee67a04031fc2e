"""人脸关键点提供模块，基于 MediaPipe FaceMesh"""

from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import Landmark


class LandmarkProvider:
    """使用 MediaPipe FaceMesh 检测人脸，输出第一张脸的归一化 3D 关键点"""

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        face_mesh=None,
    ):
        """初始化 MediaPipe FaceMesh，可传入已有实例"""
        if face_mesh is None:
            face_mesh = mp.solutions.face_mesh.FaceMesh(
                max_num_faces=1,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=0.5,
                refine_landmarks=True,
            )
        self._face_mesh = face_mesh

    def detect(self, frame: np.ndarray) -> Optional[List[Landmark]]:
        """
        检测单帧图像中的人脸关键点。

        Args:
            frame: BGR 格式的 OpenCV 图像帧

        Returns:
            归一化 (x, y, z) 列表；未检测到人脸时返回 None
        """
        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return None

        # 只使用第一张脸
        face = results.multi_face_landmarks[0]
        return [(lm.x, lm.y, lm.z) for lm in face.landmark]

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()
