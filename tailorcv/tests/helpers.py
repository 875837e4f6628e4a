"""Shared builders and fakes for the test suite."""
import io
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

from PIL import Image


def make_pdf(lines: list[str]) -> bytes:
    """Single-page PDF with a real text layer."""
    ops = ["BT", "/F1 12 Tf", "72 720 Td", "14 TL"]
    for line in lines:
        escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        ops.append(f"({escaped}) Tj T*")
    ops.append("ET")
    stream = "\n".join(ops).encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for i, obj in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % i + obj + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref)
    return bytes(out)


def make_image(fmt: str = "PNG", size=(320, 240), color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


CV_LINES = [
    "Jane Doe - Backend Engineer",
    "Berlin, Germany - jane@example.com",
    "Experience: Globex GmbH, Backend Engineer, 2019-2024",
    "Built Python and PostgreSQL services handling 5M requests per day",
    "Education: TU Berlin, BSc Computer Science, 2015-2019",
]


# --- Model fakes ---
SKILLS = [
    "Python", "FastAPI", "PostgreSQL", "SQLAlchemy", "Docker", "Kubernetes", "AWS",
    "Redis", "REST APIs", "Microservices", "CI/CD", "Git", "Linux", "Testing",
    "System Design", "Code Review", "Mentoring",
]


def generated_resume(company="Acme Corp", role="Senior Backend Engineer", **overrides) -> dict:
    data = {
        "title": f"{company} {role} Resume",
        "company": company,
        "role": role,
        "summary": "Backend engineer with five years building Python services.",
        "firstName": "Jane",
        "lastName": "Doe",
        "jobTitle": "Backend Engineer",
        "city": "Berlin",
        "country": "Germany",
        "email": "jane@example.com",
        "phone": None,
        "workExperiences": [
            {
                "position": "Backend Engineer",
                "company": "Globex GmbH",
                "startDate": "2019-03-01",
                "endDate": "2024-01-31",
                "description": "Built Python and PostgreSQL services handling 5M requests per day.",
            }
        ],
        "educations": [
            {
                "degree": "BSc Computer Science",
                "school": "TU Berlin",
                "startDate": "2015-10-01",
                "endDate": "2019-07-31",
                "description": "Distributed systems coursework and a thesis on caching.",
            }
        ],
        "skills": list(SKILLS),
        "analysis": {
            "matchingPoints": ["Python backend experience", "PostgreSQL at scale"],
            "prioritizedSkills": ["Python", "PostgreSQL"],
            "reason": "The role centres on Python services backed by PostgreSQL.",
        },
    }
    data.update(overrides)
    return data


class FakeLLM:
    """Stands in for LanguageModelClient; records calls."""

    def __init__(self, resume: dict | None = None, raw: str | None = None):
        self.raw = raw if raw is not None else json.dumps(resume or generated_resume())
        self.calls: list[tuple] = []
        self.usage_recorder = None

    def _record(self):
        if self.usage_recorder is not None:
            self.usage_recorder()

    async def analyze_image(self, base64_image, job_description="", additional_info=None, temperature=0.5):
        self.calls.append(("analyze_image", base64_image[:30]))
        return "\n".join(CV_LINES)

    async def generate_resume_from_vision_analysis(self, cv_text, job_description, additional_info=None, temperature=0.5):
        self.calls.append(("generate_resume", cv_text, job_description))
        self._record()
        return self.raw

    async def generate_cover_letter(self, resume_data, job_description, additional_info=None, temperature=0.7):
        self.calls.append(("cover_letter", resume_data, job_description))
        self._record()
        return "Dear hiring team, I would love to join."

    async def generate_hr_message(self, resume_data, job_description, recruiter_name, additional_info=None, temperature=0.7):
        self.calls.append(("hr_message", recruiter_name))
        self._record()
        return f"Hi {recruiter_name}, I am interested in the role."


def llm_factory(fake: FakeLLM):
    """Replacement for llm_for_user that wires the reserved quota slot into a FakeLLM."""
    def build(db, user_id, slot=None):
        fake.usage_recorder = slot.record if slot is not None else None
        return fake
    return build


def completion(content: str):
    """Shape of an OpenAI chat completion response."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def openai_client(side_effect):
    """Object exposing .chat.completions.create like AsyncOpenAI."""
    create = AsyncMock(side_effect=side_effect)
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create))), create
