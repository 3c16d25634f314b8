from fastapi import APIRouter
from dishka.integrations.fastapi import inject
from dishka import FromComponent
from typing import Annotated
from holders.schemas import GetHolderReportRequest, HolderReportResponse
from holders.usecases import BuildHolderReportUseCase

router = APIRouter(
    prefix="/api/holders",
    tags=["Holders"]
)


@router.post("/report", response_model=HolderReportResponse)
@inject
async def build_holder_report(
    request: GetHolderReportRequest,
    use_case: Annotated[
        BuildHolderReportUseCase, FromComponent("holders")
    ]
) -> HolderReportResponse:
    """
    Build report of token holders at or above the threshold.

    Parameters
    ----------
    request : GetHolderReportRequest
        Request with optional threshold and record limit
    use_case : BuildHolderReportUseCase
        Use case for building the report

    Returns
    -------
    HolderReportResponse
        Holders with balances and address classification
    """
    return await use_case(
        threshold=request.threshold,
        max_records=request.max_records
    )
