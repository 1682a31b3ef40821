"""Reusable calculation libraries for tradeperf."""
