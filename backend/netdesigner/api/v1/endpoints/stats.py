"""Public platform counters for the landing page"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, distinct

from netdesigner.core.database import get_db
from netdesigner.models.user import User
from netdesigner.models.design import NetworkDesign
from netdesigner.models.report import NetworkReport


router = APIRouter()


@router.get("/")
async def get_system_stats(db: AsyncSession = Depends(get_db)):
    users = (await db.execute(select(func.count(User.id)))).scalar()
    companies = (await db.execute(
        select(func.count(distinct(User.company))).where(User.company.isnot(None))
    )).scalar()
    designs = (await db.execute(select(func.count(NetworkDesign.id)))).scalar()
    reports = (await db.execute(select(func.count(NetworkReport.id)))).scalar()

    return {"users": users, "companies": companies, "designs": designs, "reports": reports}
