"""Transaction ledger endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from yieldly.models import InvalidTransactionError

from . import ledger
from .database import Database
from .schemas import TransactionCreateRequest, TransactionSchema


def get_transaction_router(database: Database) -> APIRouter:
    router = APIRouter(prefix="/transactions", tags=["transactions"])

    @router.post("", response_model=TransactionSchema, status_code=status.HTTP_201_CREATED)
    async def create_transaction(
        payload: TransactionCreateRequest, session: AsyncSession = Depends(database.get_session)
    ) -> TransactionSchema:
        try:
            record = await ledger.record_transaction(
                session,
                payload.portfolio_id,
                payload.ticker,
                payload.type,
                payload.date,
                quantity=payload.quantity,
                price=payload.price,
                total=payload.total,
            )
        except ledger.NotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        except (InvalidTransactionError, ledger.LedgerError) as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        return TransactionSchema.model_validate(record)

    @router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_transaction(transaction_id: int, session: AsyncSession = Depends(database.get_session)) -> Response:
        try:
            await ledger.delete_transaction(session, transaction_id)
        except ledger.NotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


__all__ = ["get_transaction_router"]
