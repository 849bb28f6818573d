# pyLegoHub/config.py

"""
Per-family session configuration.

The defaults mirror the timings the hubs were tuned for; tests and
applications can derive variants with dataclasses.replace().
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionConfig:
    """Timing and throughput settings for one peripheral session."""
    # Maximum number of non-critical messages per one second window
    send_rate_max: int = 20

    # Minimum time a command block stays visible while its message is sent
    send_interval_ms: int = 100

    # Active braking before a motor is switched off (Motor)
    brake_time_ms: int = 1000

    # Extra wait after a timed run before coasting (TimedMotor)
    coast_delay_ms: int = 1000

    # Delay before sending a sensor mode command after an attach notification
    sensor_setup_delay_ms: int = 100

    # EV3 value polling
    poll_interval_ms: int = 150
    device_refresh_polls: int = 20


WEDO2_CONFIG = SessionConfig()
POWEREDUP_CONFIG = SessionConfig()
DUPLO_TRAIN_CONFIG = SessionConfig()
SPIKE_CONFIG = SessionConfig(send_rate_max=40)
EV3_CONFIG = SessionConfig(send_rate_max=40)
