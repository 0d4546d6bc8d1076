MATCH_SCHEMA_HINT = """{
  "matchPercentage": number (0-100),
  "matchedSkills": string[] (max 5),
  "missingSkills": string[] (max 5),
  "suggestions": string[] (max 3),
  "explanation": string (brief 1-2 lines)
}"""


MATCH_INSTRUCTIONS = """You are an expert recruiter and must analyze ONLY the overlap between the job description and the candidate's resume.

Only count skills that are *explicitly relevant to the job role*. Do NOT include unrelated programming languages or tools, even if they appear in the resume.

Your job is to:

1. Identify up to 5 matchedSkills from the resume that are *directly useful* for the job description.
2. Identify up to 5 missingSkills from the job description that are *not found* in the resume.
3. Provide 1-3 useful suggestions to improve job fit.
4. Provide a short explanation.
5. Calculate matchPercentage ONLY based on matchedSkills that directly align with job description needs.

Do not include skills that are not useful for this job. Ignore extra text.
Respond with ONLY the JSON object below. No markdown, no code fences, no text before or after it.

{schema}"""


MATCH_TEMPLATE = """{instructions}

RESUME:
{resume}

JOB DESCRIPTION:
{jd}"""


def build_match_prompt(resume_text: str, jd_text: str) -> str:
    instructions = MATCH_INSTRUCTIONS.format(schema=MATCH_SCHEMA_HINT)
    return MATCH_TEMPLATE.format(
        instructions=instructions,
        resume=resume_text.strip(),
        jd=jd_text.strip(),
    ).strip()
