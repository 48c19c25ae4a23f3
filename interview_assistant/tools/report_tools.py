"""
Report generation for completed interviews.

Builds a summary of one candidate's interview (details, per-answer scores,
aggregate score and the local rubric score) and renders it as a PDF.
"""
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from interview_assistant.core.scoring import RubricScorer, aggregate_interview_score
from interview_assistant.models.interview import Candidate, Interview

logger = logging.getLogger(__name__)

TABLE_STYLE = TableStyle([
    ('GRID', (0, 0), (-1, -1), 1, colors.black),
    ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
    ('PADDING', (0, 0), (-1, -1), 6),
    ('VALIGN', (0, 0), (-1, -1), 'TOP'),
])


def _percent(value: Optional[float]) -> str:
    return "Not scored" if value is None else f"{value * 100:.0f}%"


def build_report_data(
    candidate: Candidate,
    interview: Optional[Interview],
    scorer: Optional[RubricScorer] = None
) -> Dict[str, Any]:
    """Collect everything the report shows into a JSON-compatible dict."""
    scorer = scorer or RubricScorer()
    answers: List[Dict[str, Any]] = []
    rubric_score = None
    aggregate = candidate.score

    if interview is not None:
        answers_by_question = {a.question_id: a for a in interview.answers}
        for number, question in enumerate(interview.questions, 1):
            answer = answers_by_question.get(question.id)
            answers.append({
                "number": number,
                "question": question.text,
                "difficulty": question.difficulty.value,
                "type": question.type.value,
                "time_limit": question.time_limit,
                "answer": answer.text if answer else None,
                "time_spent": answer.time_spent if answer else None,
                "score": answer.score if answer else None,
                "rubric_score": scorer.score_answer(answer, question) if answer else None,
                "feedback": answer.feedback if answer else None,
                "suggestions": list(answer.suggestions) if answer else [],
            })
        if interview.answers:
            rubric_score = scorer.score_interview(interview.answers, interview.questions)
        if aggregate is None:
            aggregate = aggregate_interview_score(interview.answers)

    return {
        "candidate": candidate.model_dump(mode="json"),
        "interview_id": interview.id if interview else None,
        "status": interview.status.value if interview else None,
        "duration": interview.duration if interview else 0,
        "summary": interview.summary if interview else None,
        "score": aggregate,
        "rubric_score": rubric_score,
        "answers": answers,
        "generated_at": datetime.now().isoformat(),
    }


def render_pdf_report(report: Dict[str, Any], output_path: Optional[str] = None) -> bytes:
    """
    Render report data as a PDF.

    Args:
        report: Data from ``build_report_data``
        output_path: When given, the PDF is also written to this path

    Returns:
        The PDF bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter)
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=24,
        spaceAfter=30
    )
    heading_style = ParagraphStyle(
        'CustomHeading',
        parent=styles['Heading2'],
        fontSize=16,
        spaceAfter=12
    )
    cell_style = styles["BodyText"]

    candidate = report["candidate"]
    content = []

    content.append(Paragraph("Interview Assistant - Candidate Report", title_style))
    content.append(Spacer(1, 12))

    content.append(Paragraph("Candidate Details", heading_style))
    details_data = [
        ["Field", "Value"],
        ["Name:", candidate.get("name", "")],
        ["Email:", candidate.get("email", "")],
        ["Phone:", candidate.get("phone") or "Not provided"],
        ["Position:", candidate.get("position") or "Not provided"],
        ["Skills:", Paragraph(escape(", ".join(candidate.get("skills", [])) or "None listed"), cell_style)],
        ["Status:", candidate.get("interview_status", "")],
        ["Interview Duration:", f"{report['duration'] / 60:.1f} min"],
    ]
    details_table = Table(details_data, colWidths=[2*inch, 4*inch])
    details_table.setStyle(TABLE_STYLE)
    content.append(details_table)
    content.append(Spacer(1, 20))

    content.append(Paragraph("Performance Summary", heading_style))
    summary_data = [
        ["Metric", "Score"],
        ["Overall Score:", _percent(report["score"])],
        ["Rubric Score:", _percent(report["rubric_score"])],
        ["Questions Answered:", f"{sum(1 for a in report['answers'] if a['answer'] is not None)}/{len(report['answers'])}"],
    ]
    summary_table = Table(summary_data, colWidths=[3*inch, 3*inch])
    summary_table.setStyle(TABLE_STYLE)
    content.append(summary_table)
    content.append(Spacer(1, 20))

    content.append(Paragraph("Answer Details", heading_style))
    for item in report["answers"]:
        content.append(Paragraph(
            f"Question {item['number']} ({escape(item['difficulty'])}, {escape(item['type'])}): {escape(item['question'])}",
            styles["Heading3"]
        ))
        answer_data = [
            ["Item", "Value"],
            ["Answer", Paragraph(escape(item["answer"] or "No answer"), cell_style)],
            ["Score", _percent(item["score"])],
            ["Rubric Score", _percent(item["rubric_score"])],
            ["Time Spent", "-" if item["time_spent"] is None else f"{item['time_spent']:.0f}s of {item['time_limit']}s"],
            ["Feedback", Paragraph(escape(item["feedback"] or "-"), cell_style)],
            ["Suggestions", Paragraph(escape("; ".join(item["suggestions"]) or "-"), cell_style)],
        ]
        answer_table = Table(answer_data, colWidths=[1.5*inch, 4.5*inch])
        answer_table.setStyle(TABLE_STYLE)
        content.append(answer_table)
        content.append(Spacer(1, 12))

    if report.get("summary"):
        content.append(Spacer(1, 20))
        content.append(Paragraph("Interview Summary", heading_style))
        content.append(Paragraph(escape(report["summary"]), styles["Normal"]))

    doc.build(content)
    pdf_bytes = buffer.getvalue()

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "wb") as f:
            f.write(pdf_bytes)
        logger.info(f"Report written to {output_path}")
    return pdf_bytes


def generate_candidate_report(
    candidate: Candidate,
    interview: Optional[Interview],
    output_dir: Optional[str] = None
) -> bytes:
    """Build and render the PDF report for one candidate."""
    logger.info(f"Generating report for candidate {candidate.id}")
    report = build_report_data(candidate, interview)
    output_path = None
    if output_dir:
        output_path = f"{output_dir}/interview_report_{candidate.id}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.pdf"
    return render_pdf_report(report, output_path)
