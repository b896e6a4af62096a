"""
Rooms module for the fixed room set and its live membership.
"""
