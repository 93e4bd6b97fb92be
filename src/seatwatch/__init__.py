"""
SeatWatch

Polls the university course-registration API on a fixed schedule and raises
an alert as soon as a seat opens in a monitored class section.
"""

__version__ = "1.0.0"
