"""Oracle answer types and parsing."""

from edgewatch.oracle.answer import OracleAnswer, Predict, Skip, Unparseable, parse_answer

__all__ = ["OracleAnswer", "Predict", "Skip", "Unparseable", "parse_answer"]
