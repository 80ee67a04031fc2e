"""Flask Web 前端 - 驾驶员状态监控系统"""

import logging
import os
import threading
import time

import cv2
from flask import Flask, Response, jsonify, render_template, request

from detectors.landmark_provider import LandmarkProvider
from display.renderer import DisplayRenderer
from monitor.config import load_config
from monitor.driver_monitor import DriverMonitor
from reporting.safety_report import SafetyReporter

logger = logging.getLogger(__name__)

app = Flask(__name__, template_folder="web/templates")


class WebDetectionSystem:
    """Web 版监控系统，支持 MJPEG 视频流推送和实时数据 API。"""

    def __init__(self, config=None):
        self.config = config or load_config(os.environ.get("DRIVER_MONITOR_CONFIG"))
        self._cap = None
        self._thread = None
        self._running = False
        self._lock = threading.Lock()
        self._latest_frame = None
        self._latest_data = self._empty_data()
        self.landmark_provider = None
        self.monitor = DriverMonitor(reset_on_resume=self.config["reset_on_resume"])
        self.renderer = DisplayRenderer()
        self.reporter = SafetyReporter(
            api_key=self.config["api_key"],
            model=self.config["report_model"],
            timeout=self.config["report_timeout"],
        )

    def _empty_data(self):
        return {
            "state": "CALIBRATING",
            "alarm": "none",
            "face_detected": False,
            "active": False,
            "calibration_frames_left": 0,
            "stats": {},
        }

    def start(self):
        """启动摄像头和处理线程。"""
        if self._running:
            return True
        self._cap = cv2.VideoCapture(self.config["camera_index"])
        if not self._cap.isOpened():
            logger.error("无法打开摄像头 %s", self.config["camera_index"])
            return False
        if self.landmark_provider is None:
            self.landmark_provider = LandmarkProvider()
        with self._lock:
            self.monitor.start()
        self._running = True
        self._thread = threading.Thread(target=self._process_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self):
        """停止检测，处理线程退出后再停止告警。"""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self._cap = None
        with self._lock:
            self.monitor.stop()
            self._latest_data = dict(self._latest_data, active=False, alarm="none")

    def _process_loop(self):
        """后台处理循环。"""
        while self._running:
            if not self._cap or not self._cap.isOpened():
                break
            ret, frame = self._cap.read()
            if not ret:
                continue

            landmarks = self.landmark_provider.detect(frame)
            with self._lock:
                if not self._running:
                    break
                result = self.monitor.process_frame(landmarks)
                self._latest_data = self._build_data(result)

            rendered = self.renderer.render(frame, result)
            _, jpeg = cv2.imencode(".jpg", rendered, [cv2.IMWRITE_JPEG_QUALITY, 80])
            with self._lock:
                self._latest_frame = jpeg.tobytes()

    def _build_data(self, result):
        if result is None:
            return dict(
                self._latest_data,
                face_detected=False,
                active=self.monitor.active,
            )
        return {
            "state": result.state.value,
            "label": DisplayRenderer.state_label(result),
            "alarm": result.alarm.value,
            "face_detected": True,
            "active": self.monitor.active,
            "calibration_frames_left": result.calibration_frames_left,
            "stats": result.stats.to_dict(),
        }

    def get_frame(self):
        with self._lock:
            return self._latest_frame

    def get_data(self):
        with self._lock:
            return dict(self._latest_data)

    def get_logs(self):
        with self._lock:
            return [entry.to_dict() for entry in self.monitor.logs]

    def generate_report(self):
        """在锁外调用外部服务，避免阻塞处理线程。"""
        with self._lock:
            stats, logs = self.monitor.report_input()
        return self.reporter.generate(stats, logs)


# 全局检测系统实例
system = WebDetectionSystem()


# ---- Flask 路由 ----

@app.route("/")
def index():
    return render_template("index.html")


@app.route("/api/start", methods=["POST"])
def api_start():
    ok = system.start()
    return jsonify({"success": ok, "message": "Monitoring started" if ok else "Unable to open camera"})


@app.route("/api/stop", methods=["POST"])
def api_stop():
    system.stop()
    return jsonify({"success": True, "message": "Monitoring stopped"})


@app.route("/api/data")
def api_data():
    return jsonify(system.get_data())


@app.route("/api/logs")
def api_logs():
    limit = request.args.get("limit", None, type=int)
    logs = system.get_logs()
    total = len(logs)
    if limit is not None:
        logs = logs[:limit]
    return jsonify({"logs": logs, "total": total})


@app.route("/api/report", methods=["POST"])
def api_report():
    return jsonify({"report": system.generate_report()})


@app.route("/video_feed")
def video_feed():
    def generate():
        while True:
            frame = system.get_frame()
            if frame is not None:
                yield (b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + frame + b"\r\n")
            time.sleep(0.03)
    return Response(generate(), mimetype="multipart/x-mixed-replace; boundary=frame")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
