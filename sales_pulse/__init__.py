"""
sales-pulse: multi-branch sales consolidation and revenue analytics on Spark.
"""

__version__ = "0.1.0"
