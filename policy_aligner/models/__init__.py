from policy_aligner.models.entities import (
    Document,
    DocumentSection,
    Domain,
    Mapping,
    SectionTag,
    StakeholderInsight,
    Tag,
    User,
)

__all__ = [
    "Document",
    "DocumentSection",
    "Domain",
    "Mapping",
    "SectionTag",
    "StakeholderInsight",
    "Tag",
    "User",
]
