"""Conversion of XCSP3 constraint instances into CHR++ programs."""

__version__ = "0.1.0"

__all__ = [
    "builder",
    "callbacks",
    "cli",
    "factory",
    "model",
    "parser",
    "predicate",
    "rule",
    "rule_alldiff",
    "rule_instantiation",
    "rule_intension",
    "rule_linear",
]