"""Room domain services: store, rules engine, coordinator and timers.

The rules engine is transport-free so the networked coordinator and the
single-device driver share it; only the coordinator and gateway know about
Socket.IO.
"""
