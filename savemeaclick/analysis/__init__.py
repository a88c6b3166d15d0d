"""LLM reply analysis.

Turns the model's fixed-format reply into a structured AnalysisResult:
  1. Prompt template the reply format depends on
  2. Response parser (section markers → ParsedSections → QualityMetrics)
  3. Scoring (quality score, time saved)
"""
