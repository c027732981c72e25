"""
Reports API

Full (JSON), professional (PDF) and template-driven reports for a design.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger, set_design_id
from netdesigner.models.user import User
from netdesigner.models.design import NetworkDesign
from netdesigner.models.report import NetworkReport, ReportTemplate, ReportType, ReportFormat
from netdesigner.schemas.report import ReportResponse, ReportSummary, TemplateReportRequest
from netdesigner.modules.auth.dependencies import get_current_user, get_accessible_design, user_can_access_design
from netdesigner.services.pdf_generator import pdf_generator
from netdesigner.services.report_generator import report_generator
from netdesigner.services.storage_service import storage_service
from netdesigner.utils.file_upload import attachment_headers


router = APIRouter()


# ==================== Helper Functions ====================

async def get_report_or_404(report_id: str, user: User, db: AsyncSession) -> NetworkReport:
    report = await db.get(NetworkReport, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    if str(report.user_id) != str(user.id) and not report.is_public:
        design = await db.get(NetworkDesign, report.design_id)
        if not design or not await user_can_access_design(db, design, user.id):
            raise HTTPException(status_code=403, detail="Not authorized to view this report")
    return report


async def store_pdf(report: NetworkReport, content: dict) -> None:
    """Render the report content to PDF and keep it in storage"""
    pdf = pdf_generator.generate_report_pdf(content)
    stored = await storage_service.save(pdf, "reports", f"report-{report.id}.pdf", "application/pdf")
    report.storage_key = stored["key"]
    report.download_url = stored["url"]


# ==================== Generation ====================

@router.post("/full/{design_id}", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_full_report(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, design_id, current_user)
    set_design_id(str(design.id))

    report = NetworkReport(
        design_id=design.id,
        user_id=current_user.id,
        report_type=ReportType.FULL,
        title=f"Network Design Report - {design.design_name}",
        content=report_generator.generate_full_report(design, current_user.company),
        format=ReportFormat.JSON,
    )
    db.add(report)
    await db.commit()

    logger.info(f"[Reports] Full report {report.id} generated for design {design.id}")
    return report


@router.post("/prof/{design_id}", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_professional_report(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Professional report rendered to PDF; the response carries its download_url"""
    design = await get_accessible_design(db, design_id, current_user)
    set_design_id(str(design.id))

    content = report_generator.generate_professional_report(design, current_user.company)
    report = NetworkReport(
        design_id=design.id,
        user_id=current_user.id,
        report_type=ReportType.PROFESSIONAL,
        title=content["title"],
        content=content,
        format=ReportFormat.PDF,
    )
    db.add(report)
    await db.flush()

    await store_pdf(report, content)
    await db.commit()

    logger.info(f"[Reports] Professional report {report.id} stored at {report.storage_key}")
    return report


@router.post("/template", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_template_report(
    request_data: TemplateReportRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, request_data.design_id, current_user)

    template = await db.get(ReportTemplate, request_data.template_id)
    if not template or not template.is_active:
        raise HTTPException(status_code=404, detail="Report template not found")
    if request_data.format not in (template.supported_formats or []):
        raise HTTPException(
            status_code=400,
            detail=f"Format '{request_data.format}' is not supported by this template"
        )

    content = report_generator.generate_from_template(design, template, current_user)
    report = NetworkReport(
        design_id=design.id,
        user_id=current_user.id,
        report_type=ReportType.CUSTOM,
        title=content["title"],
        content=content,
        format=request_data.format,
        template_id=template.id,
        report_metadata={"version": template.version, "generated_by": "user"},
    )
    db.add(report)
    await db.flush()

    if request_data.format == ReportFormat.PDF.value:
        await store_pdf(report, content)
    await db.commit()

    logger.info(f"[Reports] Report {report.id} generated from template '{template.name}'")
    return report


# ==================== Retrieval ====================

@router.get("/design/{design_id}", response_model=List[ReportResponse])
async def list_design_reports(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, design_id, current_user)
    result = await db.execute(
        select(NetworkReport)
        .where(NetworkReport.design_id == design.id)
        .order_by(NetworkReport.generated_at.desc())
    )
    return result.scalars().all()


@router.get("/user", response_model=List[ReportSummary])
async def list_user_reports(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The user's reports without content, newest first"""
    result = await db.execute(
        select(NetworkReport, NetworkDesign.design_name)
        .outerjoin(NetworkDesign, NetworkDesign.id == NetworkReport.design_id)
        .where(NetworkReport.user_id == current_user.id)
        .order_by(NetworkReport.generated_at.desc())
    )
    return [
        ReportSummary(
            id=report.id,
            design_id=report.design_id,
            design_name=design_name,
            report_type=report.report_type.value,
            title=report.title,
            format=report.format.value,
            generated_at=report.generated_at,
            download_url=report.download_url,
        )
        for report, design_name in result.all()
    ]


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await get_report_or_404(report_id, current_user, db)


@router.get("/{report_id}/download")
async def download_report(
    report_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Stored PDF, or a fresh rendition for sectioned reports stored without one"""
    report = await get_report_or_404(report_id, current_user, db)

    pdf = await storage_service.read(report.storage_key) if report.storage_key else None
    if pdf is None:
        if not isinstance(report.content, dict) or "sections" not in report.content:
            raise HTTPException(status_code=400, detail="This report has no PDF rendition")
        pdf = pdf_generator.generate_report_pdf(report.content)

    filename = f"{report.title.replace(' ', '_')}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers=attachment_headers(filename, fallback=f"report-{report.id}.pdf"),
    )
