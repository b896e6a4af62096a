"""
Chat module for client-side messaging functionality.
"""
