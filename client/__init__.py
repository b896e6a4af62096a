"""
Client package for the RetroChat relay.

Contains the asyncio chat client used by the terminal client and tests.
"""
