"""CradleCoach parenting assistant API."""
