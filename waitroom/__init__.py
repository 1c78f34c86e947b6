"""
Virtual Waiting Room

Places users in an ordered wait queue per named queue and admits them into
a proceed set in controlled batches, issuing a verifiable token on admission.
"""

__version__ = "1.0.0"
