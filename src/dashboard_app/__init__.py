"""Flask JSON API for the hospitality check-in dashboard."""
