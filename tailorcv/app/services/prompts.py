"""Prompt templates for the language-model client."""
import json

# --- Image transcription ---
IMAGE_SYSTEM_PROMPT = (
    "You are a professional resume analyzer with exceptional attention to detail. "
    "Your sole responsibility is to extract ALL information from resume images with perfect "
    "accuracy and completeness. Do not filter, interpret, or modify anything - your job is purely "
    "to extract every single piece of text visible in the document. Extract even technical details, "
    "specific programming languages, technologies mentioned, with their complete names and versions "
    "if shown. Extract ALL skills regardless of relevance."
)

IMAGE_USER_PROMPT = """Extract the COMPLETE text content from this resume/CV image with PERFECT accuracy. Include EVERY detail visible in the document, especially:

1. Personal information (name, contact details, location)
2. Career summary/objective exactly as written
3. ALL work experience with exact dates, company names, and EVERY responsibility and technology mentioned
4. Complete education history with every detail:
   - Complete degree names and certifications with exact dates
   - Full names of educational institutions
   - ALL coursework, projects, thesis work mentioned
   - ALL technical subjects, programming languages, and technologies studied
5. ALL technical and soft skills with proficiency levels if mentioned
6. ALL programming languages, frameworks, tools, and technologies listed
7. ALL languages and certifications with proficiency levels
8. Every other detail visible in the document

Do not miss ANY information or details from the document, regardless of how irrelevant it might seem. Extract EXACTLY what appears in the image without ANY omission, filtering, or interpretation. Include all technical terms, programming languages, technologies exactly as they appear, even if they seem outdated or irrelevant."""

# --- Tailored resume ---
RESUME_SYSTEM_PROMPT = (
    "You are a professional ATS resume optimizer that creates tailored, keyword-optimized resumes "
    "to help candidates pass automated screening and impress hiring managers. While prioritizing "
    "skills and experiences that match the job description, also include relevant transferable "
    "skills to demonstrate the candidate's breadth of capabilities. Include at least 15-20 skills "
    "in total, ensuring a comprehensive representation of the candidate's abilities. Maintain "
    "honesty and authenticity while helping candidates present their qualifications in the best "
    "possible light. Always respond with properly formatted JSON and ensure all education entries "
    "have detailed descriptions."
)

RESUME_OUTPUT_SCHEMA = {
    "title": "Resume title in the format [Company Name] [Job Title] Resume",
    "company": "Company name from the job description, or null if it is not stated",
    "role": "Job title being applied for, as written in the job description",
    "summary": "Compelling professional summary specifically tailored to this role",
    "firstName": "First name from CV",
    "lastName": "Last name from CV",
    "jobTitle": "Current or target job title",
    "city": "City from CV",
    "country": "Country from CV",
    "email": "Email from CV",
    "phone": "Phone from CV",
    "workExperiences": [
        {
            "position": "Position title",
            "company": "Company name",
            "startDate": "ISO date string (YYYY-MM-DD) or null if unknown",
            "endDate": "ISO date string (YYYY-MM-DD) or null if current/unknown",
            "description": (
                "Detailed job description with bullet points highlighting achievements relevant to the "
                "target role. Remove any mentions of skills, technologies, or experiences that don't "
                "match the job description."
            ),
        }
    ],
    "educations": [
        {
            "degree": "Degree title",
            "school": "School name",
            "startDate": "ISO date string (YYYY-MM-DD) or null if unknown - IMPORTANT: Only use valid dates or null",
            "endDate": "ISO date string (YYYY-MM-DD) or null if unknown - IMPORTANT: Only use valid dates or null",
            "description": (
                "Detailed description of relevant coursework, academic achievements, or projects that "
                "align with the job requirements. Filter out any mention of courses, technologies or "
                "skills unrelated to this role."
            ),
        }
    ],
    "skills": [
        "Include at least 15-20 skills from my CV, prioritizing those that match the job description "
        "but also including relevant transferable skills"
    ],
    "analysis": {
        "matchingPoints": ["List the top 3-5 most important matching points between the CV and job description"],
        "prioritizedSkills": ["List 2-3 skills that were prioritized in the optimization"],
        "reason": "A brief explanation of why certain skills/experiences were prioritized (1-2 sentences)",
    },
}

RESUME_USER_PROMPT = """You're an expert resume optimization specialist. I need a tailored resume for a specific job opportunity.

# MY ORIGINAL CV (EXTRACTED CONTENT)
{cv_text}

# JOB DESCRIPTION I'M APPLYING FOR
{job_description}
{additional_info_block}
# INSTRUCTIONS
Your goal is to create a professional, ATS-optimized resume that will help me win this role.

Please follow these guidelines strictly:

1. CONTENT FILTERING - Your first priority is to COMPLETELY FILTER OUT any skills, experiences, or technologies from my CV that are irrelevant to the specific job description. If I have C++ experience but am applying for a management role that doesn't mention C++, REMOVE all C++ references completely.

2. CONTENT BALANCE - Use my original CV as the base material, ensuring all information remains factually accurate, but ONLY include information relevant to this specific role. Aim for approximately **65% original CV content** and **35% rephrased, prioritized, or enhanced content** tailored for the target job, while maintaining full truthfulness.

3. HIGHLIGHTING & EMPHASIS - Actively **highlight, reorder, and rephrase** parts of my experience that best match the job description. If my CV contains relevant projects or achievements, place them prominently. Rephrase freely for impact, as long as the information remains true.

4. AUTHENTICITY & ACCURACY - Do **not fabricate** any jobs, dates, companies, qualifications, or skills that are not in my CV. If any data is missing, return an empty string or null.

5. TITLE FORMAT - Format the resume title as "[Company Name] [Job Title] Resume", using the company name from the job description. Also return the company name and the job title separately in the "company" and "role" fields.

6. ATS OPTIMIZATION - Naturally integrate keywords from the job description throughout the resume, especially in the summary, skills, and job descriptions, while avoiding keyword stuffing.

7. PRIVACY & SECURITY - Never include hyperlinks, URLs, or contact details that aren't already in my original CV. Don't add sensitive or private company information.

8. SKILLS ALIGNMENT - Extract at least 15-20 skills from my CV, prioritizing those mentioned in the job description, but also including relevant transferable skills that would be valuable for this position even if not explicitly mentioned in the job description. Aim to create a comprehensive skills section that fully represents my capabilities relevant to the role.

9. QUANTIFIABLE RESULTS - Include metrics (percentages, numbers) from my original CV wherever possible to strengthen impact.

10. EDUCATION DETAILS - Include **detailed descriptions** for each education entry: coursework, academic achievements, projects, or thesis work related to the job. **Do not leave education descriptions empty.**

11. PROFESSIONAL SUMMARY - Write a strong, personalized summary that showcases my qualifications for this specific role.

12. PROFESSIONAL FORMATTING - Use clear, professional language with powerful action verbs and concise, reader-friendly formatting.

13. BALANCED SKILLS REPRESENTATION - While prioritizing skills mentioned in the job description, also include related and transferable skills from my CV that would be valuable for the role. For technical positions, include programming languages, frameworks, and technologies that demonstrate my technical breadth when relevant to the industry even if not explicitly mentioned in the job description.

# OUTPUT FORMAT
Return a complete, properly formatted **JSON object** using the following structure:
{output_schema}

IMPORTANT:
- **Respond only with valid JSON.**
- **Do not include explanations or comments outside the JSON.**
- **If any fields are missing from my CV, use null or an empty string.**
- **For date fields, use only valid ISO date strings (YYYY-MM-DD) or null. Never use placeholder or invalid dates.**
- **Include at least 15-20 skills in the skills section, prioritizing those that match the job description but also including relevant transferable skills.**
- **Include a comprehensive set of skills that demonstrate my capabilities for the role.**
- **Make sure to include the analysis section with meaningful insights about the resume optimization.**
- Aim for a well-rounded representation of skills while maintaining relevance to the target position.
- Ensure all education entries include detailed descriptions. Do not leave fields empty.
- Prioritize Work Experience, Education, and Skills sections if you run into token limits.
"""

# --- Cover letter ---
COVER_LETTER_SYSTEM_PROMPT = (
    "You are a professional cover letter writer who creates compelling, personalized cover letters "
    "that highlight a candidate's relevant qualifications and experience for specific job "
    "opportunities. You write in a confident, professional tone while maintaining authenticity."
)

COVER_LETTER_USER_PROMPT = """You are an expert cover letter writer. I need a **short, natural, and persuasive cover letter** for a job application.

# MY RESUME DATA
{resume_data}

# JOB DESCRIPTION I'M APPLYING FOR
{job_description}
{additional_info_block}
# INSTRUCTIONS
Write a natural, well-written cover letter of around **80 words**, maximum 5 sentences. Make it feel human, personal, and authentic, as if I wrote it myself. Avoid sounding robotic or generic.

Structure:
- Start with a confident opening about my interest in the role and company.
- Highlight 1-2 of my most relevant experiences or skills that match the job.
- Add a specific achievement if relevant (numbers, impact, or result).
- End with a polite, natural call to action.

Guidelines:
- Avoid filler phrases and exaggerated flattery.
- Use natural language and sentence flow.
- Use keywords from the job description **subtly**, no keyword stuffing.
- Do **not** fabricate any information or achievements.
- Stay true to my resume data.
- Avoid repeating the job title or company name unnecessarily.

IMPORTANT:
- Keep it within approximately 80 words.
- Respond **only** with the final cover letter text, no explanations or extra formatting.
- Do not include any links or personal information not present in my resume data.
"""

# --- Recruiter outreach ---
HR_MESSAGE_SYSTEM_PROMPT = (
    "You are a professional job seeker who creates compelling, personalized outreach messages to "
    "recruiters and HR professionals. You write in a friendly, professional tone while maintaining "
    "authenticity and brevity."
)

HR_MESSAGE_USER_PROMPT = """You are an expert at writing personalized HR outreach messages. I need a **short, natural, and compelling message** to a recruiter or HR professional.

# MY RESUME DATA
{resume_data}

# JOB DESCRIPTION I'M APPLYING FOR
{job_description}

# RECRUITER NAME
{recruiter_name}
{additional_info_block}
# INSTRUCTIONS
Write a natural, personalized message to the recruiter of around **50-70 words**, maximum 4 sentences. Make it feel human, personal, and authentic, as if I wrote it myself. This could be for LinkedIn, email, or other professional communication channels.

Structure:
- Start with a personalized greeting using the recruiter's name.
- Briefly express interest in the specific role, mentioning something specific from the job description.
- Highlight 1 key qualification or experience that makes me a strong match.
- Include a polite call to action (like asking for a conversation or interview).

Guidelines:
- Be concise, professional, and friendly.
- Avoid generic phrases that could apply to any job.
- Use natural language that sounds like a real person.
- Do **not** fabricate any information or achievements.
- Stay true to my resume data.
- Make it clear this is a personalized message, not a generic template.

IMPORTANT:
- Keep it within approximately 50-70 words.
- Respond **only** with the final message text, no explanations or extra formatting.
- Do not include any links or personal information not present in my resume data.
"""


def _additional_info_block(additional_info: str | None, heading: str) -> str:
    info = (additional_info or "").strip()
    if not info:
        return ""
    return f"\n# {heading}\n{info}\n"


def build_resume_prompt(cv_text: str, job_description: str, additional_info: str | None = None) -> str:
    return RESUME_USER_PROMPT.format(
        cv_text=cv_text,
        job_description=job_description,
        additional_info_block=_additional_info_block(additional_info, "ADDITIONAL INFORMATION ABOUT ME"),
        output_schema=json.dumps(RESUME_OUTPUT_SCHEMA, indent=2),
    )


def build_cover_letter_prompt(resume_data: dict, job_description: str, additional_info: str | None = None) -> str:
    return COVER_LETTER_USER_PROMPT.format(
        resume_data=json.dumps(resume_data, indent=2, default=str),
        job_description=job_description,
        additional_info_block=_additional_info_block(additional_info, "ADDITIONAL INFORMATION OR SPECIFIC REQUESTS"),
    )


def build_hr_message_prompt(
    resume_data: dict,
    job_description: str,
    recruiter_name: str,
    additional_info: str | None = None,
) -> str:
    return HR_MESSAGE_USER_PROMPT.format(
        resume_data=json.dumps(resume_data, indent=2, default=str),
        job_description=job_description,
        recruiter_name=recruiter_name,
        additional_info_block=_additional_info_block(additional_info, "ADDITIONAL INFORMATION OR SPECIFIC REQUESTS"),
    )
