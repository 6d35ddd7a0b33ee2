"""
Behavioral event logging pipeline.

caller -> POST /log -> Kafka (event_logs) -> log bridge worker
       -> LogEvent RPC (log-writer service) -> event_logs table
"""

__version__ = "1.0.0"
