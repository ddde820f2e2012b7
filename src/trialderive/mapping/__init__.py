"""Declarative field mapping from SDTM Findings domains to Observations.

Re-exports:
    from trialderive.mapping import MappingRule, apply_mapping_rules
    from trialderive.mapping import get_domain_rules, observations_from_frame
"""

from trialderive.mapping.domains import (
    DOMAIN_RULES,
    EG_RULES,
    LB_RULES,
    VS_RULES,
    findings_rules,
    get_domain_rules,
)
from trialderive.mapping.ingest import (
    IngestResult,
    observations_from_frame,
    parse_subject_dates,
)
from trialderive.mapping.rules import MappingRule, apply_mapping_rules
from trialderive.mapping.transform_registry import (
    AVAILABLE_TRANSFORMS,
    get_transform,
    list_transforms,
)

__all__ = [
    "MappingRule",
    "apply_mapping_rules",
    "AVAILABLE_TRANSFORMS",
    "get_transform",
    "list_transforms",
    "DOMAIN_RULES",
    "VS_RULES",
    "LB_RULES",
    "EG_RULES",
    "findings_rules",
    "get_domain_rules",
    "IngestResult",
    "observations_from_frame",
    "parse_subject_dates",
]
