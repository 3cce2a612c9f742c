"""Prompt Builder Module

Builds the prompts and system prompts for the job-application workflows:
- Application materials (job + candidate profile + JSON format block)
- Cover letters with a selectable tone
- Resume optimization for ATS systems
- Resume parsing into structured candidate data
"""

from typing import Iterable, List, Optional

import structlog

from jobcraft.models.application import (
    MATERIAL_SECTIONS,
    SECTION_DESCRIPTIONS,
    CandidateProfile,
    JobDetails,
)

logger = structlog.get_logger()

APPLICATION_SYSTEM_PROMPT = """You are an expert career coach, resume strategist, and professional writer.
You create tailored, ATS-friendly application materials that are authentic, persuasive, and free of generic filler.

CRITICAL: You MUST return your response as valid JSON only. No additional text, explanations, or formatting.
Start your response with { and end with }. Do not use code blocks or markdown formatting.

Style Guidelines:
- Keep resume and cover letter ATS-friendly but human-sounding
- Quantify achievements wherever possible
- Avoid clichés like 'hardworking' or 'responsible for'
- Ensure LinkedIn post is engaging, positive, and share-ready
- Use action verbs for resume bullets
- Make content specific to the role and company

Example response format:
{
    "ats_keywords": "software engineer, python, react, node.js, agile",
    "resume_summary": "Experienced software engineer with 5+ years...",
    "resume_experience": "• Led development of web applications...",
    "cover_letter": "Dear Hiring Manager...",
    "linkedin_post": "Excited to announce..."
}"""

COVER_LETTER_SYSTEM_PROMPT = (
    "You are an expert career counselor and professional writer specializing "
    "in creating compelling cover letters."
)

RESUME_OPTIMIZATION_SYSTEM_PROMPT = (
    "You are an expert resume writer and ATS optimization specialist."
)

RESUME_PARSING_TEMPLATE = """Extract and structure the following information from this resume text. Return only valid JSON format.

Resume Text:
{resume_text}

Extract these details and return in this exact JSON format:
{{
    "candidate_name": "Full name of the candidate",
    "current_role": "Current or most recent job title",
    "years_experience": "Total years of professional experience (number only)",
    "skills_list": "Comma-separated list of key technical and professional skills",
    "career_highlights": "3-5 bullet points of major achievements and experience highlights",
    "education_details": "Education background including degrees, institutions, and years",
    "contact_info": {{
        "email": "Email address if found",
        "phone": "Phone number if found",
        "location": "Location/city if mentioned"
    }}
}}

Focus on:
- Technical skills, programming languages, frameworks, tools
- Quantifiable achievements (numbers, percentages, dollar amounts)
- Leadership experience and team management
- Education credentials and certifications
- Years of experience in relevant fields

If information is not available, use reasonable defaults or leave as empty string."""


class PromptBuilder:
    """Builds prompts for the application-materials workflows."""

    def build_application_prompt(
        self,
        job: JobDetails,
        profile: CandidateProfile,
        sections: Optional[Iterable[str]] = None,
    ) -> str:
        """Build the application materials prompt.

        Args:
            job: Job posting details
            profile: Candidate profile
            sections: Material sections to request (all when empty)

        Returns:
            Prompt ending in a JSON format block for the requested sections
        """
        prompt = (
            f"Job Title: {job.job_title}\n"
            f"Company Name: {job.company_name}\n"
            f"Job Description:\n{job.job_description}\n\n"
            "Candidate Profile:\n"
            f"Name: {profile.candidate_name}\n"
            f"Current Role: {profile.current_role}\n"
            f"Years of Experience: {profile.years_experience}\n"
            f"Key Skills: {profile.skills_list}\n"
            f"Career Highlights:\n{profile.career_highlights}\n"
            f"Education: {profile.education_details}\n\n"
        )

        fields = self._format_fields(self.resolve_sections(sections))
        prompt += "Please return your output in the following JSON format:\n{\n"
        prompt += ",\n".join(fields)
        prompt += "\n}"

        logger.debug(
            "prompt_built",
            kind="application",
            sections=len(fields),
            prompt_length=len(prompt),
        )
        return prompt

    @staticmethod
    def resolve_sections(sections: Optional[Iterable[str]]) -> List[str]:
        """Known sections in request order; every section when none given."""
        requested = [s for s in (sections or []) if s in SECTION_DESCRIPTIONS]
        return requested or list(MATERIAL_SECTIONS)

    def _format_fields(self, sections: List[str]) -> List[str]:
        return [f'    "{s}": "{SECTION_DESCRIPTIONS[s]}"' for s in sections]

    def build_cover_letter_prompt(
        self,
        job: JobDetails,
        skills: str,
        experience: str,
        tone: str = "professional",
    ) -> str:
        return f"""Write a compelling {tone} cover letter for the following position:

Job Title: {job.job_title}
Company: {job.company_name}

Job Description:
{job.job_description}

Candidate Skills:
{skills}

Candidate Experience:
{experience}

Please create a well-structured cover letter that:
1. Shows enthusiasm for the role and company
2. Highlights relevant skills and experience
3. Demonstrates understanding of the job requirements
4. Includes specific examples of achievements
5. Maintains a {tone} tone throughout
6. Follows standard business letter format"""

    def build_resume_optimization_prompt(
        self,
        resume_content: str,
        job_description: str,
        optimization_type: str = "both",
    ) -> str:
        """Build the ATS optimization prompt.

        The instruction list depends on the focus: ``keywords`` adds
        terminology items, ``format`` adds layout items, ``both`` adds all.
        """
        prompt = f"""Optimize the following resume for ATS systems and the specific job description provided:

Current Resume:
{resume_content}

Target Job Description:
{job_description}

Optimization Focus: {optimization_type}

Please provide an optimized version that:"""

        if optimization_type in ("keywords", "both"):
            prompt += """
1. Incorporates relevant keywords from the job description
2. Uses industry-standard terminology
3. Includes quantifiable achievements"""

        if optimization_type in ("format", "both"):
            prompt += """
4. Uses ATS-friendly formatting
5. Organizes sections logically
6. Ensures clear hierarchy and readability"""

        prompt += """
7. Maintains truthfulness while highlighting strengths
8. Tailors content specifically to the target position"""

        return prompt

    def build_resume_parsing_prompt(self, resume_text: str) -> str:
        return RESUME_PARSING_TEMPLATE.format(resume_text=resume_text)
