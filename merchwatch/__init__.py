"""
merchwatch — open PID queries and SLA breaches from exported chat transcripts.
"""

__version__ = "1.2.0"
