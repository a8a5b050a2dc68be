"""Core curriculum generation stages."""

from .curriculum import CurriculumSynthesizer, SynthesisConfig, SynthesisResult
from .extractor import DocumentExtractor, ExtractorConfig
from .insights import InsightConfig, InsightGenerator, experience_level_for
from .matcher import MatchEngine, MatchEngineConfig
from .quality import QualityReport, assess_quality

__all__ = [
    "CurriculumSynthesizer",
    "DocumentExtractor",
    "ExtractorConfig",
    "InsightConfig",
    "InsightGenerator",
    "MatchEngine",
    "MatchEngineConfig",
    "QualityReport",
    "SynthesisConfig",
    "SynthesisResult",
    "assess_quality",
    "experience_level_for",
]
