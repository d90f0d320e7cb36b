from visacheck.analysis.analyzer import Analyzer
from visacheck.analysis.factory import AnalyzerFactory
from visacheck.analysis.models import EvaluationResult

__all__ = ["Analyzer", "AnalyzerFactory", "EvaluationResult"]
