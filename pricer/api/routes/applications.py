"""Loan application routes: remember which priced option the borrower chose."""

from fastapi import APIRouter, Depends, HTTPException

from pricer.api.deps import get_selection_store
from pricer.api.schemas import LoanOptionSchema, SelectionResponse
from pricer.data.base import LoanSelectionStore

router = APIRouter(prefix="/api/v1/applications", tags=["applications"])


@router.put("/{application_id}/selected-loan", response_model=SelectionResponse)
async def select_loan(
    application_id: str,
    option: LoanOptionSchema,
    store: LoanSelectionStore = Depends(get_selection_store),
):
    """Store the chosen loan option, replacing any earlier choice."""
    store.save_selection(application_id, option.model_dump(mode="json", by_alias=True))
    return SelectionResponse(application_id=application_id, selected_loan=option)


@router.get("/{application_id}/selected-loan", response_model=SelectionResponse)
async def get_selected_loan(
    application_id: str,
    store: LoanSelectionStore = Depends(get_selection_store),
):
    selection = store.get_selection(application_id)
    if selection is None:
        raise HTTPException(status_code=404, detail=f"No loan selected for application {application_id}")
    return SelectionResponse(application_id=application_id, selected_loan=LoanOptionSchema.model_validate(selection))
