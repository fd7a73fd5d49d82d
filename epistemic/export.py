from __future__ import annotations

from io import BytesIO

from docx import Document

from epistemic.schemas import ResponseStatus, StudySnapshot

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_CATEGORY_LABELS = [
    ("summary", "Summary"),
    ("practiceQuestions", "Practice Questions with Answers"),
    ("vocabulary", "Important Vocabulary"),
    ("resources", "Additional Resources"),
]


def render_docx(snap: StudySnapshot) -> BytesIO:
    doc = Document()
    doc.add_heading("Generated Study Material", level=1)
    doc.add_paragraph(f"Topic: {snap.topic or '(none)'}")

    selected = [label for attr, label in _CATEGORY_LABELS if getattr(snap.toggles, attr)]
    doc.add_paragraph("Categories: " + (", ".join(selected) if selected else "(none selected)"))

    doc.add_heading("Material", level=2)
    if snap.response.status is ResponseStatus.succeeded:
        for block in snap.response.text.split("\n"):
            doc.add_paragraph(block)
    elif snap.response.status is ResponseStatus.pending:
        doc.add_paragraph("(Still processing)")
    elif snap.response.status is ResponseStatus.failed:
        doc.add_paragraph(snap.response.text)
    else:
        doc.add_paragraph("No response yet.")

    bio = BytesIO()
    doc.save(bio)
    bio.seek(0)
    return bio
