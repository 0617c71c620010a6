"""Portfolio company repository."""

from typing import List, Optional

from sqlalchemy.future import select

from backoffice.models.company import CompanyStage, PortfolioCompany
from backoffice.repositories.base import BaseRepository


class CompanyRepository(BaseRepository[PortfolioCompany]):
    """Concrete repository for :class:`PortfolioCompany` entities."""

    async def list_companies(
        self,
        stage: Optional[CompanyStage] = None,
        sector: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PortfolioCompany]:
        stmt = select(self.model)
        if stage is not None:
            stmt = stmt.where(self.model.stage == stage)
        if sector:
            stmt = stmt.where(self.model.sector == sector)
        stmt = stmt.order_by(self.model.name, self.model.id).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_name(self, name: str) -> Optional[PortfolioCompany]:
        stmt = (
            select(self.model)
            .where(self.model.name == name.strip())
            .order_by(self.model.created_at)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()
