"""
DARE YIW Tracker

Filtered report engine for the DARE Youth in Work programme tracker:
listing, aggregation and export of youth, business, mentor and feasibility
assessment records across programme districts.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

__version__ = "1.0.0"
