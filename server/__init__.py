"""
Server package for the RetroChat relay.

This package contains all server-side functionality including:
- Session and room coordination
- Message pipeline and slash commands
- Achievements
- Durable storage
- Configuration and utilities
"""
