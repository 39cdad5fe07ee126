"""CSV bulk import endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from yieldly.importer import parse_transactions_csv

from . import ledger
from .database import Database
from .models import Portfolio
from .schemas import CsvImportRequest, CsvImportResponse, ImportDetails, ImportedLine, ImportLineError

logger = logging.getLogger(__name__)


def get_import_router(database: Database) -> APIRouter:
    router = APIRouter(prefix="/import", tags=["import"])

    @router.post("/csv", response_model=CsvImportResponse)
    async def import_csv(
        payload: CsvImportRequest, session: AsyncSession = Depends(database.get_session)
    ) -> CsvImportResponse:
        if not payload.csv_data.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="CSV data required")

        parsed = parse_transactions_csv(payload.csv_data)
        imported: list[ImportedLine] = []
        errors = [ImportLineError(line=item.line, error=item.error) for item in parsed.errors]
        portfolios: dict[str, Portfolio | None] = {}

        for row in parsed.rows:
            if row.portfolio_code not in portfolios:
                portfolios[row.portfolio_code] = await ledger.get_portfolio_by_code(session, row.portfolio_code)
            portfolio = portfolios[row.portfolio_code]
            if portfolio is None:
                errors.append(ImportLineError(line=row.line, error=f"Portfolio '{row.portfolio_code}' not found"))
                continue
            try:
                await ledger.record_transaction(
                    session,
                    portfolio.id,
                    row.ticker,
                    row.type,
                    row.date,
                    quantity=row.quantity,
                    price=row.price,
                    total=row.total,
                    commit=False,
                )
            except ValueError as exc:
                errors.append(ImportLineError(line=row.line, error=str(exc)))
                continue
            imported.append(ImportedLine(line=row.line, symbol=row.ticker, portfolio=row.portfolio_code, date=row.date))

        await session.commit()
        errors.sort(key=lambda item: item.line)
        logger.info("CSV import stored %d transactions with %d errors", len(imported), len(errors))
        return CsvImportResponse(
            success=True,
            imported=len(imported),
            errors=len(errors),
            details=ImportDetails(imported=imported, errors=errors),
        )

    return router


__all__ = ["get_import_router"]
