"""
Presence module for live connection state.

Handles:
- One ephemeral session per connection
- Login binding and username lookup
"""
