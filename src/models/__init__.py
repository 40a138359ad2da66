"""oracle-rag domain models -- re-exports all public model classes.

The models are organized across five submodules by domain concern:
    - content.py   -- Knowledge-base items, chunks, framework detections, options
    - pipeline.py  -- Ingestion job and stage state
    - query.py     -- Business query context, user profile, query options
    - ranking.py   -- Search candidates and ranked results
    - assembly.py  -- Assembled response, roadmap, quality and confidence

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.assembly import (
    ActionableInsight,
    AssembledResponse,
    AssemblyMetadata,
    AssemblyStrategy,
    ConfidenceAssessment,
    ConfidenceFactor,
    ConflictResolution,
    ConflictStrategy,
    ContentOrganization,
    ContentSection,
    ContentStructure,
    Evidence,
    EvidenceType,
    ExpectedImpact,
    FormattedCitation,
    FrameworkIntegration,
    GapHandling,
    ImplementationComplexity,
    ImplementationRoadmap,
    InsightPriority,
    IntegrationPoint,
    Milestone,
    QualityMetrics,
    QueryAnswer,
    QueryTimings,
    RiskLevel,
    RiskMitigation,
    RoadmapAction,
)
from src.models.content import (
    ChunkType,
    ContentChunk,
    ContentItem,
    ContentStatus,
    ContentType,
    FrameworkDetection,
    ProcessingOptions,
    QualityTier,
)
from src.models.pipeline import (
    STAGE_DESCRIPTIONS,
    BatchItem,
    JobStatus,
    ProcessingJob,
    ProcessingStage,
    StageName,
    StageStatus,
    compute_progress,
)
from src.models.query import (
    BusinessQueryContext,
    KnownContext,
    QueryComplexity,
    QueryOptions,
    UserIntent,
    UserProfile,
)
from src.models.ranking import RankedResult, ScoreBreakdown, SearchCandidate

__all__ = [
    "STAGE_DESCRIPTIONS",
    "ActionableInsight",
    "AssembledResponse",
    "AssemblyMetadata",
    "AssemblyStrategy",
    "BatchItem",
    "BusinessQueryContext",
    "ChunkType",
    "ConfidenceAssessment",
    "ConfidenceFactor",
    "ConflictResolution",
    "ConflictStrategy",
    "ContentChunk",
    "ContentItem",
    "ContentOrganization",
    "ContentSection",
    "ContentStatus",
    "ContentStructure",
    "ContentType",
    "Evidence",
    "EvidenceType",
    "ExpectedImpact",
    "FormattedCitation",
    "FrameworkDetection",
    "FrameworkIntegration",
    "GapHandling",
    "ImplementationComplexity",
    "ImplementationRoadmap",
    "InsightPriority",
    "IntegrationPoint",
    "JobStatus",
    "KnownContext",
    "Milestone",
    "ProcessingJob",
    "ProcessingOptions",
    "ProcessingStage",
    "QualityMetrics",
    "QualityTier",
    "QueryAnswer",
    "QueryComplexity",
    "QueryOptions",
    "QueryTimings",
    "RankedResult",
    "RiskLevel",
    "RiskMitigation",
    "RoadmapAction",
    "ScoreBreakdown",
    "SearchCandidate",
    "StageName",
    "StageStatus",
    "UserIntent",
    "UserProfile",
    "compute_progress",
]
