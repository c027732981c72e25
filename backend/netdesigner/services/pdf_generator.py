"""
PDF Generator for network reports
Renders report sections, generated device configurations and optimization
summaries into PDF documents with ReportLab.
"""

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.colors import HexColor
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, PageBreak, Preformatted
from xml.sax.saxutils import escape
from datetime import datetime
from typing import Dict, List, Any, Optional
from io import BytesIO
import html
import re

from netdesigner.core.exceptions import ReportGenerationError
from netdesigner.core.logging_config import logger


BLOCK_TAGS = re.compile(r"</?(p|div|h[1-6]|li|tr|table|ul|ol|br|hr)[^>]*>", re.IGNORECASE)
CELL_TAGS = re.compile(r"</t[dh]>", re.IGNORECASE)
ANY_TAG = re.compile(r"<[^>]+>")


def strip_html(content: str) -> List[str]:
    """Text lines of an HTML fragment, tags removed"""
    if not content:
        return []
    text = CELL_TAGS.sub(" | ", content)
    text = BLOCK_TAGS.sub("\n", text)
    text = ANY_TAG.sub("", text)
    text = html.unescape(text)
    lines = []
    for line in text.splitlines():
        line = " ".join(line.split()).strip(" |")
        if line:
            lines.append(line)
    return lines


class ReportPDFGenerator:
    """Generate report PDFs"""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='DocTitle',
            parent=self.styles['Title'],
            fontSize=24,
            textColor=HexColor('#0f4c81'),
            spaceAfter=12,
            alignment=TA_CENTER,
            fontName='Helvetica-Bold'
        ))
        self.styles.add(ParagraphStyle(
            name='DocSubtitle',
            parent=self.styles['Normal'],
            fontSize=14,
            textColor=HexColor('#4a4a4a'),
            spaceAfter=8,
            alignment=TA_CENTER,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeading',
            parent=self.styles['Normal'],
            fontSize=16,
            textColor=HexColor('#2c3e50'),
            spaceAfter=12,
            spaceBefore=12,
            fontName='Helvetica-Bold',
            keepWithNext=True
        ))
        self.styles.add(ParagraphStyle(
            name='SectionBody',
            parent=self.styles['Normal'],
            fontSize=11,
            textColor=HexColor('#333333'),
            spaceAfter=6,
            alignment=TA_JUSTIFY,
        ))
        self.styles.add(ParagraphStyle(
            name='ConfigText',
            parent=self.styles['Normal'],
            fontSize=8,
            fontName='Courier',
            leading=10,
        ))

    def _document(self, buffer: BytesIO) -> SimpleDocTemplate:
        return SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=72,
            leftMargin=72,
            topMargin=72,
            bottomMargin=72
        )

    def _cover_page(self, title: str, metadata: Optional[Dict[str, Any]] = None) -> List:
        metadata = metadata or {}
        story = [Spacer(1, 2 * inch), Paragraph(escape(title), self.styles['DocTitle']), Spacer(1, 0.3 * inch)]
        if metadata.get("client"):
            story.append(Paragraph(f"Prepared for: {escape(str(metadata['client']))}", self.styles['DocSubtitle']))
        generated = metadata.get("generated_at") or datetime.utcnow().isoformat()
        story.append(Paragraph(f"Generated: {escape(str(generated)[:10])}", self.styles['DocSubtitle']))
        if metadata.get("version"):
            story.append(Paragraph(f"Version {escape(str(metadata['version']))}", self.styles['DocSubtitle']))
        story.append(PageBreak())
        return story

    def _section(self, section: Dict[str, Any]) -> List:
        story = [Paragraph(escape(section.get("title") or ""), self.styles['SectionHeading'])]
        for line in strip_html(section.get("content") or ""):
            story.append(Paragraph(escape(line), self.styles['SectionBody']))
        story.append(Spacer(1, 0.2 * inch))
        if section.get("page_break"):
            story.append(PageBreak())
        return story

    def _build(self, story: List, label: str) -> bytes:
        buffer = BytesIO()
        try:
            self._document(buffer).build(story)
        except Exception as e:
            logger.error(f"Error generating {label} PDF: {e}", exc_info=True)
            raise ReportGenerationError(f"Failed to generate PDF: {e}", report_type=label)
        return buffer.getvalue()

    def generate_report_pdf(self, report: Dict[str, Any]) -> bytes:
        """Cover page followed by each section with HTML tags stripped"""
        story = self._cover_page(report.get("title", "Network Design Report"), report.get("metadata"))
        for section in report.get("sections", []):
            story.extend(self._section(section))
        pdf = self._build(story, "report")
        logger.info(f"Generated report PDF '{report.get('title')}' ({len(pdf)} bytes)")
        return pdf

    def generate_config_pdf(self, title: str, configuration: str, details: Optional[Dict[str, Any]] = None) -> bytes:
        """Generated device configuration as a monospace listing"""
        story = [Paragraph(escape(title), self.styles['DocTitle']), Spacer(1, 0.2 * inch)]
        for key, value in (details or {}).items():
            if value is not None:
                label = key.replace('_', ' ').title()
                story.append(Paragraph(f"<b>{escape(label)}:</b> {escape(str(value))}", self.styles['SectionBody']))
        story.append(Spacer(1, 0.2 * inch))
        story.append(Preformatted(configuration or "", self.styles['ConfigText']))
        return self._build(story, "config")

    def generate_optimization_pdf(self, content: Dict[str, Any]) -> bytes:
        story = self._cover_page(content.get("title", "Optimization Report"), {"generated_at": content.get("created_at")})
        story.append(Paragraph("Metrics", self.styles['SectionHeading']))
        metrics = content.get("metrics") or {}
        for phase in ("before", "after"):
            for key, value in (metrics.get(phase) or {}).items():
                story.append(Paragraph(
                    f"{phase.title()} {escape(key.replace('_', ' '))}: {escape(str(value))}",
                    self.styles['SectionBody']
                ))
        story.append(Paragraph("Recommendations", self.styles['SectionHeading']))
        for item in content.get("recommendations") or []:
            story.append(Paragraph(f"• {escape(str(item))}", self.styles['SectionBody']))
        return self._build(story, "optimization")


pdf_generator = ReportPDFGenerator()
