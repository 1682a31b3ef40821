"""
tradeperf services.

- reporting: PerformanceAnalyzer, ReportBuilder, output sinks and console formatting
"""
