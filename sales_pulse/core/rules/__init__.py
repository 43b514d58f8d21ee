"""
Coercion rule engine and configuration management.
"""

from .rule_config import RuleConfigBuilder, RuleConfigLoader, default_rules
from .rule_engine import RuleEngine

__all__ = [
    "RuleEngine",
    "RuleConfigLoader",
    "RuleConfigBuilder",
    "default_rules",
]
