"""
Chat module for server-side messaging functionality.

Handles:
- Message validation, filtering and fan-out
- Slash command dispatch
- Achievement evaluation
- Login, room joins and disconnects
"""
