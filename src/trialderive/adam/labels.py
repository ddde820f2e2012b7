"""ADaM variable labels (<= 40 characters, XPT v5 safe)."""

from __future__ import annotations

ADAM_LABELS: dict[str, str] = {
    # identifiers
    "STUDYID": "Study Identifier",
    "USUBJID": "Unique Subject Identifier",
    "SUBJID": "Subject Identifier for the Study",
    "SITEID": "Study Site Identifier",
    "VSSEQ": "Sequence Number",
    "LBSEQ": "Sequence Number",
    "EGSEQ": "Sequence Number",
    "AESEQ": "Sequence Number",
    "CMSEQ": "Sequence Number",
    # treatment
    "TRT01P": "Planned Treatment for Period 01",
    "TRT01PN": "Planned Treatment for Period 01 (N)",
    "TRT01A": "Actual Treatment for Period 01",
    "TRT01AN": "Actual Treatment for Period 01 (N)",
    "TRTSDT": "Date of First Exposure to Treatment",
    "TRTEDT": "Date of Last Exposure to Treatment",
    "TRTDURD": "Total Treatment Duration (Days)",
    "RANDDT": "Date of Randomization",
    "EOSDT": "End of Study Date",
    "DTHDT": "Date of Death",
    "DTHFL": "Subject Death Flag",
    "DCSREAS": "Reason for Discontinuation from Study",
    "DCSREASP": "Reason Spec for Discont from Study",
    # population flags
    "SAFFL": "Safety Population Flag",
    "ITTFL": "Intent-To-Treat Population Flag",
    "PPROTFL": "Per-Protocol Population Flag",
    "EFFFL": "Efficacy Population Flag",
    # demographics
    "AGE": "Age",
    "AGEU": "Age Units",
    "AGEGR1": "Pooled Age Group 1",
    "AGEGR1N": "Pooled Age Group 1 (N)",
    "SEX": "Sex",
    "RACE": "Race",
    "RACEN": "Race (N)",
    "ETHNIC": "Ethnicity",
    "COUNTRY": "Country",
    # BDS
    "PARAMCD": "Parameter Code",
    "PARAM": "Parameter",
    "PARCAT1": "Parameter Category 1",
    "ADT": "Analysis Date",
    "ADY": "Analysis Relative Day",
    "ATPT": "Analysis Timepoint",
    "AVAL": "Analysis Value",
    "AVALC": "Analysis Value (C)",
    "AVALU": "Analysis Value Unit",
    "BASE": "Baseline Value",
    "BASEC": "Baseline Value (C)",
    "CHG": "Change from Baseline",
    "PCHG": "Percent Change from Baseline",
    "ABLFL": "Baseline Record Flag",
    "ANL01FL": "Analysis Flag 01",
    "ANRLO": "Analysis Normal Range Lower Limit",
    "ANRHI": "Analysis Normal Range Upper Limit",
    "ANRIND": "Analysis Reference Range Indicator",
    "BNRIND": "Baseline Reference Range Indicator",
    "SHIFT1": "Shift 1",
    "CRIT1": "Analysis Criterion 1",
    "CRIT1FL": "Criterion 1 Evaluation Result Flag",
    # occurrence
    "PARCAT2": "Parameter Category 2",
    "AETERM": "Reported Term for the Adverse Event",
    "AEDECOD": "Dictionary-Derived Term",
    "AEBODSYS": "Body System or Organ Class",
    "CMTRT": "Reported Name of Drug, Med, or Therapy",
    "CMDECOD": "Standardized Medication Name",
    "CMCAT": "Category for Medication",
    "CMDOSE": "Dose per Administration",
    "CMDOSU": "Dose Units",
    "CMDOSFRQ": "Dosing Frequency per Interval",
    "CMROUTE": "Route of Administration",
    "ASTDT": "Analysis Start Date",
    "AENDT": "Analysis End Date",
    "ASTDY": "Analysis Start Relative Day",
    "AENDY": "Analysis End Relative Day",
    "ADURN": "Analysis Duration (N)",
    "ASEV": "Analysis Severity/Intensity",
    "ASEVN": "Analysis Severity/Intensity (N)",
    "ASER": "Analysis Serious Event",
    "ASERN": "Analysis Serious Event (N)",
    "AREL": "Analysis Causality",
    "ARELN": "Analysis Causality (N)",
    "AOUT": "Analysis Outcome of Event",
    "ATOXGR": "Analysis Toxicity Grade",
    "ATOXGRN": "Analysis Toxicity Grade (N)",
    "TRTEMFL": "Treatment Emergent Analysis Flag",
    "APRIFL": "Prior Medication Flag",
    "ACONFL": "Concomitant Medication Flag",
    "AOCCFL": "1st Occurrence within Subject Flag",
    "AOCCPFL": "1st Occurrence of Preferred Term Flag",
    "AOCC01FL": "1st Occurrence 01 Flag",
}

DATASET_LABELS: dict[str, str] = {
    "ADSL": "Subject-Level Analysis Dataset",
    "ADVS": "Analysis Dataset Vital Signs",
    "ADLB": "Analysis Dataset Laboratory",
    "ADEG": "Analysis Dataset ECG",
    "ADAE": "Adverse Events Analysis Dataset",
    "ADCM": "Analysis Dataset Concomitant Medications",
}
