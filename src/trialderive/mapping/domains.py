"""Mapping rule tables for SDTM Findings domains feeding BDS datasets.

Every Findings domain maps onto the same Observation shape:
USUBJID -> subject_id, --TESTCD -> parameter_code, --DTC -> observation_date,
--STRESN -> value, --ORRES -> character_value. Remaining rules carry
passthrough columns into ``Observation.extras`` under their ADaM names.
"""

from __future__ import annotations

from trialderive.mapping.rules import MappingRule

OBSERVATION_FIELDS: tuple[str, ...] = (
    "subject_id",
    "parameter_code",
    "observation_date",
    "value",
    "character_value",
)


def findings_rules(prefix: str) -> list[MappingRule]:
    """Build the core Observation rules for a Findings domain prefix.

    Args:
        prefix: Two-letter SDTM domain prefix (e.g., "VS", "LB", "EG").

    Returns:
        Rules producing the five Observation fields plus PARAM and the
        sequence number.
    """
    p = prefix.upper()
    return [
        MappingRule(source="USUBJID", target="subject_id", transform="strip", required=True),
        MappingRule(source=f"{p}TESTCD", target="parameter_code", transform="upper", required=True),
        MappingRule(source=f"{p}DTC", target="observation_date", transform="strip", required=True),
        MappingRule(source=f"{p}STRESN", target="value", transform="to_numeric", required=True),
        MappingRule(source=f"{p}ORRES", target="character_value", transform="strip"),
        MappingRule(source="STUDYID", target="STUDYID", transform="strip"),
        MappingRule(source=f"{p}SEQ", target=f"{p}SEQ", transform="to_numeric"),
        MappingRule(source=f"{p}TEST", target="PARAM", transform="strip"),
        MappingRule(source=f"{p}STRESU", target="AVALU", transform="strip"),
    ]


VS_RULES: list[MappingRule] = findings_rules("VS")

LB_RULES: list[MappingRule] = [
    *findings_rules("LB"),
    MappingRule(source="LBCAT", target="PARCAT1", transform="upper"),
    MappingRule(source="LBSTNRLO", target="ANRLO", transform="to_numeric"),
    MappingRule(source="LBSTNRHI", target="ANRHI", transform="to_numeric"),
    MappingRule(
        source="LBNRIND",
        target="ANRIND",
        transform="recode",
        codelist={"L": "LOW", "H": "HIGH", "N": "NORMAL"},
    ),
]

EG_RULES: list[MappingRule] = [
    *findings_rules("EG"),
    MappingRule(source="EGTPT", target="ATPT", transform="strip"),
]

DOMAIN_RULES: dict[str, list[MappingRule]] = {
    "VS": VS_RULES,
    "LB": LB_RULES,
    "EG": EG_RULES,
}


def get_domain_rules(domain: str) -> list[MappingRule]:
    """Return the rule table for a Findings domain.

    Unregistered domains get the generic Findings rules for their prefix.
    """
    rules = DOMAIN_RULES.get(domain.upper())
    if rules is None:
        return findings_rules(domain)
    return rules
