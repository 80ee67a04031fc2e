"""驾驶员状态监控系统入口文件"""

import argparse
import logging
import sys

import cv2

from detectors.landmark_provider import LandmarkProvider
from display.renderer import DisplayRenderer
from monitor.config import load_config
from monitor.driver_monitor import DriverMonitor
from reporting.safety_report import SafetyReporter

logger = logging.getLogger(__name__)


class DetectionSystem:
    """桌面版监控系统，协调关键点检测、监控会话和渲染，管理视频流主循环。"""

    def __init__(self, config_path=None):
        self._cap = None

        self.config = load_config(config_path)

        self.landmark_provider = LandmarkProvider()
        self.monitor = DriverMonitor(reset_on_resume=self.config["reset_on_resume"])
        self.renderer = DisplayRenderer()
        self.reporter = SafetyReporter(
            api_key=self.config["api_key"],
            model=self.config["report_model"],
            timeout=self.config["report_timeout"],
        )

    def run(self):
        """启动主检测循环。"""
        self._cap = cv2.VideoCapture(self.config["camera_index"])

        if not self._cap.isOpened():
            logger.error("无法打开摄像头 %s", self.config["camera_index"])
            sys.exit(1)

        self.monitor.start()
        try:
            self._main_loop()
        finally:
            self.stop()

    def _main_loop(self):
        """视频流处理主循环。q 退出，p 暂停/恢复，r 生成报告。"""
        while True:
            ret, frame = self._cap.read()
            if not ret:
                continue

            landmarks = self.landmark_provider.detect(frame)
            result = self.monitor.process_frame(landmarks)

            rendered = self.renderer.render(frame, result)
            cv2.imshow("Driver Monitor", rendered)

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("p"):
                self.toggle_pause()
            elif key == ord("r"):
                print(self.generate_report())

    def toggle_pause(self):
        """暂停或恢复监控。"""
        if self.monitor.active:
            self.monitor.stop()
        else:
            self.monitor.start()

    def generate_report(self):
        """根据会话统计生成安全报告文本。"""
        stats, logs = self.monitor.report_input()
        return self.reporter.generate(stats, logs)

    def stop(self):
        """停止监控、释放摄像头资源、关闭所有窗口、关闭关键点检测器。"""
        self.monitor.stop()
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        cv2.destroyAllWindows()
        self.landmark_provider.close()


def main():
    parser = argparse.ArgumentParser(description="驾驶员状态监控系统")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 配置文件路径",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="输出调试日志",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    system = DetectionSystem(config_path=args.config)
    system.run()


if __name__ == "__main__":
    main()
