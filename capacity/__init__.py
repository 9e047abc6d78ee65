"""
Camp Capacity Tracker — registration counters with advisory limits.

A small aiohttp service that tracks how many people registered for each
program (camp week, session, ...) against a fixed capacity, with a public
check/register API, a status page and a key-protected admin view.
"""

__version__ = "1.0.0"
