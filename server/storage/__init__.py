"""
Storage module for durable server state.

Handles:
- Account records and lifetime message counters
- Per-room message history with bounded retention
- Achievement unlocks and message reactions
"""
