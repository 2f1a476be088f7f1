"""
slotbook - availability and slot booking core for small service businesses.
"""

__version__ = "0.1.0"
