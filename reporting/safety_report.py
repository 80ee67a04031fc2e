"""安全报告模块：把会话统计和最近事件交给外部文本生成服务"""

import logging
import os
from typing import List, Optional

import requests

from models.data_models import AlertLogEntry, SessionStats

logger = logging.getLogger(__name__)

_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

NO_API_KEY_MESSAGE = "API Key not configured. Unable to generate report."
FAILURE_MESSAGE = "Failed to generate safety report. Please check your network connection."
EMPTY_MESSAGE = "No analysis generated."


def build_prompt(stats: SessionStats, logs: List[AlertLogEntry]) -> str:
    """生成报告提示词，logs 为最新在前的最近事件"""
    events = "\n".join(f"- [{e.timestamp}] {e.type.value}: {e.details}" for e in logs)
    return (
        "You are an AI Driving Safety Instructor. Analyze the following driving session "
        "data and provide a concise, safety-focused summary and recommendation.\n\n"
        "Session Stats:\n"
        f"- Total Yawns: {stats.yawn_count}\n"
        f"- Drowsiness Events: {stats.drowsy_count}\n"
        f"- Average Heart Rate: {stats.heart_rate} bpm\n\n"
        f"Event Log (Last {len(logs)} events):\n"
        f"{events}\n\n"
        "Instructions:\n"
        "1. Rate the driver's fatigue level (Low/Medium/High/Critical).\n"
        "2. Provide specific advice based on the frequency of yawns and drowsiness.\n"
        "3. Keep it under 100 words.\n"
        "4. Use a professional but caring tone.\n"
    )


class SafetyReporter:
    """调用 Gemini generateContent 接口生成安全报告，失败时返回提示文字而不抛异常"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.5-flash",
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    def generate(self, stats: SessionStats, logs: List[AlertLogEntry]) -> str:
        """
        生成报告文本。

        Args:
            stats: 会话统计快照
            logs: 最近的告警日志（最多 10 条，最新在前）

        Returns:
            报告文本或失败提示
        """
        if not self.api_key:
            return NO_API_KEY_MESSAGE

        payload = {"contents": [{"parts": [{"text": build_prompt(stats, logs)}]}]}

        try:
            response = self._session.post(
                _API_URL.format(model=self.model),
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("报告生成失败: %s", e)
            return FAILURE_MESSAGE

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            logger.warning("报告响应格式错误: %s", data)
            return FAILURE_MESSAGE

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        return text.strip() or EMPTY_MESSAGE
