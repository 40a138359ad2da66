"""Ingestion-side analysis services.

The IngestionOrchestrator (src/pipeline/orchestrator.py) runs these during
the analysis and processing stages of a job:

1. **Score** (document_scorer.py / DocumentScorer) -- whole-document
   quality and business relevance, plus the quality tier.

2. **Detect** (framework_detector.py / FrameworkDetector) -- named
   business frameworks with confidence, matched keywords and phrases.
   Advisory: a detector failure degrades to an empty list.

3. **Chunk** (chunker.py / ContentChunker) -- overlapping word windows
   tagged with structural type, importance, concepts and entities.
"""

from src.services.ingestion.chunker import ContentChunker
from src.services.ingestion.document_scorer import DocumentScorer, DocumentScores
from src.services.ingestion.framework_detector import FrameworkDetector

__all__ = [
    "ContentChunker",
    "DocumentScorer",
    "DocumentScores",
    "FrameworkDetector",
]
