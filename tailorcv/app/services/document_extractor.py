"""
Document text extraction - PDFs page by page with pdfplumber, images through the vision model.
"""
import base64
import io

import pdfplumber

from tailorcv.app.core.config import MIME_DOCX, MIME_PDF, MIME_JPEG, MIME_PNG, settings
from tailorcv.app.core.exceptions import EmptyExtraction, UnsupportedFileType
from tailorcv.app.core.logging_config import get_logger

logger = get_logger("services.document_extractor")


def extract_text_from_pdf(content: bytes) -> str:
    """Extract text from every page, pages separated by a blank line."""
    text_parts = []
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
    return "\n\n".join(text_parts).strip()


def to_data_url(content: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


async def extract_text(
    content: bytes,
    mime_type: str,
    llm=None,
    job_description: str = "",
    additional_info: str | None = None,
) -> str:
    """
    Extract plain text from an uploaded CV.

    Raises:
        UnsupportedFileType: not a PDF/PNG/JPEG (DOCX included)
        EmptyExtraction: PDF unreadable or its text is shorter than min_extracted_text_length
    """
    mime_type = (mime_type or "").lower()

    if mime_type == MIME_PDF:
        try:
            text = extract_text_from_pdf(content)
        except Exception as e:
            logger.warning("PDF extraction failed size_bytes=%d error=%s", len(content), e)
            raise EmptyExtraction("Could not read the PDF. Please upload a different file.") from e
        if len(text) < settings.min_extracted_text_length:
            logger.info("PDF extraction too short chars=%d", len(text))
            raise EmptyExtraction()
        logger.info("PDF extracted chars=%d", len(text))
        return text

    if mime_type in (MIME_PNG, MIME_JPEG):
        if llm is None:
            raise ValueError("A language-model client is required to extract text from images")
        return await llm.analyze_image(to_data_url(content, mime_type), job_description, additional_info)

    if mime_type == MIME_DOCX:
        raise UnsupportedFileType("DOCX parsing is not supported yet. Please upload a PDF or image.")

    raise UnsupportedFileType()
