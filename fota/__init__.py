"""Serial telemetry monitor and firmware rollout driver."""

__version__ = "0.1.0"
