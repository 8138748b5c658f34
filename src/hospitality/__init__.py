"""
Core package for the hospitality check-in dashboard.
"""
