"""Backend implementations for rtcwake.

This package contains device-specific backend implementations.
"""

from .base import RTC_AF, AlarmRecord, RTCDevice, RTCTime
from .linux import LinuxRTC

__all__ = ["RTC_AF", "AlarmRecord", "LinuxRTC", "RTCDevice", "RTCTime"]
