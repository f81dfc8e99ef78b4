from __future__ import annotations

GRADE_RUBRIC = (
    "best=fair chance encouraged, better=has EEO statement, good=no background check mentioned, "
    "fair=background check but only certain felonies disqualify, poor=strict background requirements"
)

_AUTO_FIELDS = """{
  "isLegitimate": true or false,
  "legitimacyReason": "brief explanation",
  "jobTitle": "exact job title",
  "company": "company name",
  "location": "city, state",
  "directApplicationUrl": "direct apply link if different or same URL",
  "grade": "best or better or good or fair or poor",
  "gradeReason": "explanation",
  "experienceCategory": "construction or warehouse or transportation or foodservice or hospitality or custodial or other",
  "ceoMatch": "explanation of why this job matches CEO Fresno participant skills",
  "salary": "salary if listed",
  "requiresDiploma": true or false,
  "requiresLicense": true or false,
  "datePosted": "YYYY-MM-DD format",
  "expirationDate": "YYYY-MM-DD or null"
}"""

_MANUAL_FIELDS = """{
  "jobTitle": "exact job title",
  "company": "company name",
  "location": "city, state",
  "grade": "best or better or good or fair or poor",
  "gradeReason": "explanation based on: %s",
  "experienceCategory": "construction or warehouse or transportation or foodservice or hospitality or custodial or other",
  "ceoMatch": "explanation of why this job matches CEO Fresno participant skills (mention relevant certifications like OSHA, forklift, CDL, food handler if applicable)",
  "salary": "salary if listed",
  "requiresDiploma": true or false,
  "requiresLicense": true or false
}""" % GRADE_RUBRIC

PROGRAM = "a fair-chance employment program serving people with criminal backgrounds"


def auto_prompt(url: str) -> str:
    return (
        f"Analyze this job posting URL for {PROGRAM}: {url}\n\n"
        "IMPORTANT: Use web search to fetch and analyze the actual job posting content.\n\n"
        "Respond ONLY with a JSON object (no markdown, no backticks) with these exact fields:\n"
        f"{_AUTO_FIELDS}"
    )


def manual_prompt(url: str, description: str) -> str:
    return (
        f"Analyze this job posting for {PROGRAM}.\n\n"
        f"Job URL: {url}\n\n"
        f"Job Description:\n{description}\n\n"
        "Based on the job description provided, respond ONLY with a JSON object "
        "(no markdown, no backticks) with these exact fields:\n"
        f"{_MANUAL_FIELDS}"
    )
