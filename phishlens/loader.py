import os

from phishlens.schema import EmailInput

SUPPORTED_EXTENSIONS = {".eml", ".txt", ".msg"}
MAX_BODY_CHARS = 2000
# Enough bytes for MAX_BODY_CHARS characters of UTF-8
MAX_UPLOAD_BYTES = MAX_BODY_CHARS * 4


class UnsupportedFileError(ValueError):
    """Raised for uploads whose extension the loader does not accept."""


def email_input_from_upload(filename: str, content: bytes) -> EmailInput:
    """
    Turn an uploaded file into an EmailInput.

    The file is read as plain text; no MIME parsing happens here. The body is
    truncated to MAX_BODY_CHARS characters.
    """
    filename = os.path.basename(filename or "")
    extension = os.path.splitext(filename)[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError(
            f"Unsupported file type {extension or '(none)'}; expected one of "
            + ", ".join(sorted(SUPPORTED_EXTENSIONS))
        )

    text = content.decode("utf-8", errors="replace")
    return EmailInput(
        subject=f"Uploaded Email: {filename}",
        body=text[:MAX_BODY_CHARS],
    )
