"""
SlideTiming

Suggests slide durations from an author's previously timed, similar slides.
"""

__version__ = "1.0.0"
__author__ = "SlideTiming Team"
