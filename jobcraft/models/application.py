"""Job application data models.

Defines the inputs (job posting, candidate profile) and outputs
(generated application materials, parsed resume data) of the
application-materials workflow.
"""

from typing import Dict, List, Literal

from pydantic import BaseModel, Field

MATERIAL_SECTIONS: List[str] = [
    "ats_keywords",
    "resume_summary",
    "resume_experience",
    "cover_letter",
    "linkedin_post",
]

SECTION_DESCRIPTIONS: Dict[str, str] = {
    "ats_keywords": "Comma-separated list of 15-20 ATS keywords from job description",
    "resume_summary": (
        "Tailored 3-5 sentence professional summary that highlights relevant "
        "experience and value proposition"
    ),
    "resume_experience": (
        "5-7 bullet points of relevant experience, each starting with action "
        "verbs and including quantified achievements where possible"
    ),
    "cover_letter": (
        "Personalized, role-specific cover letter (3-4 paragraphs) that "
        "connects experience to job requirements"
    ),
    "linkedin_post": (
        "50-100 word engaging LinkedIn post about applying for this role, "
        "expressing enthusiasm and fit"
    ),
}

ERROR_MATERIALS: Dict[str, str] = {
    "ats_keywords": "Error generating keywords. Please try again.",
    "resume_summary": "Error generating summary. Please try again.",
    "resume_experience": "Error generating experience. Please try again.",
    "cover_letter": "Error generating cover letter. Please try again.",
    "linkedin_post": "Error generating LinkedIn post. Please try again.",
}


class JobDetails(BaseModel):
    """Job posting the materials are tailored to."""

    job_title: str = Field(..., min_length=1, max_length=200)
    company_name: str = Field(..., min_length=1, max_length=200)
    job_description: str = Field(..., min_length=1, max_length=5000)


class CandidateProfile(BaseModel):
    """Candidate details, entered manually or recovered from a resume."""

    candidate_name: str = ""
    current_role: str = ""
    years_experience: int = Field(default=0, ge=0)
    skills_list: str = ""
    career_highlights: str = ""
    education_details: str = ""


class ApplicationMaterials(BaseModel):
    """Generated application materials."""

    ats_keywords: str = ""
    resume_summary: str = ""
    resume_experience: str = ""
    cover_letter: str = ""
    linkedin_post: str = ""
    generated: bool = Field(
        default=True, description="False when error placeholders were returned"
    )

    @classmethod
    def error_defaults(cls) -> "ApplicationMaterials":
        return cls(**ERROR_MATERIALS, generated=False)


class ContactInfo(BaseModel):
    email: str = ""
    phone: str = ""
    location: str = ""


class ResumeData(BaseModel):
    """Structured data recovered from a resume."""

    candidate_name: str = ""
    current_role: str = ""
    years_experience: int = 0
    skills_list: str = ""
    career_highlights: str = ""
    education_details: str = ""
    contact_info: ContactInfo = Field(default_factory=ContactInfo)


CoverLetterTone = Literal["professional", "friendly", "enthusiastic"]
OptimizationType = Literal["keywords", "format", "both"]
