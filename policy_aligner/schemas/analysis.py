from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from policy_aligner.schemas.entities import AlignmentStatus


class CoverageStatus(str, Enum):
    NO_COVERAGE = "no_coverage"
    WEAK_COVERAGE = "weak_coverage"
    PARTIAL_COVERAGE = "partial_coverage"
    STRONG_COVERAGE = "strong_coverage"


class GapStatus(str, Enum):
    NO_COVERAGE = "no_coverage"
    CRITICAL_GAP = "critical_gap"
    SIGNIFICANT_GAP = "significant_gap"
    MINOR_GAP = "minor_gap"
    ADEQUATE_COVERAGE = "adequate_coverage"


class RecommendationPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"


class AlignmentCounts(BaseModel):
    total_mappings: int = 0
    fully_aligned: int = 0
    partially_aligned: int = 0
    not_aligned: int = 0


class DomainCoverage(AlignmentCounts):
    domain_id: int
    domain_name: str
    domain_code: str
    description: Optional[str] = None
    avg_maturity_level: Optional[float] = None
    alignment_percentage: Optional[float] = Field(
        None, description="Null when the domain has no mappings in the selected documents."
    )


class GapAnalysisRow(DomainCoverage):
    gap_status: GapStatus


class GapMatrixCell(AlignmentCounts):
    domain_id: int
    domain_name: str
    domain_code: str
    document_id: int
    document_name: str
    relevant_agency: Optional[str] = None
    avg_maturity_level: Optional[float] = None
    coverage_status: CoverageStatus


class MaturityDistributionRow(BaseModel):
    domain_id: int
    domain_name: str
    maturity_level: int
    count: int


class DomainStatistics(AlignmentCounts):
    domain_id: int
    domain_name: str
    domain_code: str
    avg_maturity_level: Optional[float] = None


class Recommendation(BaseModel):
    domain_name: str
    domain_code: str
    description: Optional[str] = None
    alignment_percentage: Optional[float] = None
    total_mappings: int
    recommendation: str
    priority: RecommendationPriority


class ReportDocument(BaseModel):
    id: int
    original_name: str
    relevant_agency: Optional[str] = None
    publication_date: Optional[str] = None
    created_at: datetime


class ReportMapping(BaseModel):
    id: int
    document_id: int
    document_name: str
    domain_name: str
    domain_code: str
    maturity_level: int
    alignment_status: AlignmentStatus
    notes: Optional[str] = None
    section_text: Optional[str] = None
    mapped_by_name: Optional[str] = None
    created_at: datetime


class ReportMetadata(BaseModel):
    generated_at: datetime
    documents_analyzed: int
    total_mappings: int
    overall_alignment_score: Optional[float] = None


class ComprehensiveSummary(AlignmentCounts):
    overall_alignment_score: Optional[float] = None
    domains_with_concerns: int = 0


class ComprehensiveReport(BaseModel):
    metadata: ReportMetadata
    documents: list[ReportDocument]
    domain_coverage: list[DomainCoverage]
    detailed_mappings: list[ReportMapping]
    areas_of_concern: list[DomainCoverage]
    summary: ComprehensiveSummary


class GapAnalysisSummary(BaseModel):
    total_domains: int
    no_coverage: int
    critical_gaps: int
    significant_gaps: int
    minor_gaps: int
    adequate_coverage: int


class GapAnalysisReport(BaseModel):
    gap_analysis: list[GapAnalysisRow]
    summary: GapAnalysisSummary


class RecommendationSummary(BaseModel):
    total_recommendations: int
    high_priority: int
    medium_priority: int


class RecommendationsReport(BaseModel):
    recommendations: list[Recommendation]
    summary: RecommendationSummary
