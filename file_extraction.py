import base64
import io
import logging
import os
import re
from dataclasses import dataclass

from fastapi import UploadFile
from pdfminer.high_level import extract_text as pdf_extract_text

import config

logger = logging.getLogger(__name__)

ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|pdf|mp4")
IMAGE_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png")

UNSUPPORTED_TYPE_MESSAGE = "Only images (JPG, PNG), PDFs, and MP4 videos are allowed"
TOO_LARGE_MESSAGE = "File too large. Maximum size is 10MB"


class UploadRejected(ValueError):
    pass


@dataclass(frozen=True)
class UploadedFile:
    name: str
    mime_type: str
    data: bytes

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf" or self.name.lower().endswith(".pdf")

    @property
    def is_image(self) -> bool:
        return self.mime_type in IMAGE_MIME_TYPES


def is_allowed_file(filename: str, mime_type: str) -> bool:
    """Both the extension and the MIME type must be on the allow-list."""
    extension = os.path.splitext(filename or "")[1].lower()
    return bool(ALLOWED_TYPES.search(extension)) and bool(ALLOWED_TYPES.search(mime_type or ""))


async def read_upload(file: UploadFile, max_bytes: int = config.MAX_UPLOAD_BYTES) -> UploadedFile:
    filename = file.filename or ""
    mime_type = file.content_type or ""
    if not is_allowed_file(filename, mime_type):
        raise UploadRejected(UNSUPPORTED_TYPE_MESSAGE)

    data = await file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise UploadRejected(TOO_LARGE_MESSAGE)
    return UploadedFile(name=filename, mime_type=mime_type, data=data)


def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    text = pdf_extract_text(io.BytesIO(pdf_bytes))
    if not text.strip():
        logger.warning("No text extracted from PDF")
        return ""
    return text


def describe_upload(upload: UploadedFile, max_chars: int = config.MAX_DOCUMENT_CHARS) -> str:
    """Fallback document text: the upload itself, base64 encoded, for the model to read."""
    encoded = base64.b64encode(upload.data).decode("ascii")
    header = f"File name: {upload.name}\nMIME type: {upload.mime_type}\nBase64: "
    return header + encoded[:max(max_chars - len(header), 0)]
