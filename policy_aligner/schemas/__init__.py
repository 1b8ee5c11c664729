from policy_aligner.schemas.analysis import (
    AlignmentCounts,
    ComprehensiveReport,
    ComprehensiveSummary,
    CoverageStatus,
    DomainCoverage,
    DomainStatistics,
    GapAnalysisReport,
    GapAnalysisRow,
    GapAnalysisSummary,
    GapMatrixCell,
    GapStatus,
    MaturityDistributionRow,
    Recommendation,
    RecommendationPriority,
    RecommendationsReport,
    RecommendationSummary,
    ReportDocument,
    ReportMapping,
    ReportMetadata,
)
from policy_aligner.schemas.entities import (
    AlignmentStatus,
    DocumentDetail,
    DocumentListItem,
    DocumentMetadataUpdate,
    DocumentRead,
    DocumentUploadResponse,
    DomainRead,
    LoginRequest,
    LoginResponse,
    MappingCreate,
    MappingRead,
    MappingUpdate,
    SectionRead,
    StakeholderInsightCreate,
    StakeholderInsightRead,
    TagCreate,
    TagRead,
    UserRead,
    UserRegister,
    UserRole,
    UserRoleUpdate,
    UserStatusUpdate,
)
