import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from reconcile import SplitError
from reconcile.models import Balance

from . import settings
from .models import (
    Group, Person, Settlement, CreateGroupRequest, PersonRequest,
    ExpenseRequest, ExpenseResponse, ExpenseDetail, SettlementPlan, LedgerExport,
    GroupExpense,
)
from .service import (
    GroupService, GroupServiceError, GroupNotFoundError, PersonNotFoundError,
    ExpenseNotFoundError, GroupClosedError,
)

logger = logging.getLogger(__name__)


def _raise_http(e: GroupServiceError):
    if isinstance(e, (GroupNotFoundError, PersonNotFoundError, ExpenseNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, GroupClosedError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def create_app(service: Optional[GroupService] = None, root_path: str = "") -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL)
    group_service = service or GroupService()

    app = FastAPI(
        title="Splitledger API",
        description="Shared expense tracking with exact minor-unit split allocation and debt simplification",
        version="1.0.0",
        root_path=root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SplitError)
    def split_error_handler(request: Request, exc: SplitError):
        logger.info("Rejected split on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": exc.to_dict()})

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "splitledger"}

    @app.post("/groups", response_model=Group, status_code=status.HTTP_201_CREATED, tags=["Groups"])
    def create_group(request: CreateGroupRequest) -> Group:
        return group_service.create_group(request)

    @app.get("/groups", response_model=list[Group], tags=["Groups"])
    def list_groups() -> list[Group]:
        return group_service.list_groups()

    @app.get("/groups/{group_id}", response_model=Group, tags=["Groups"])
    def get_group(group_id: str) -> Group:
        try:
            return group_service.get_group(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.delete("/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Groups"])
    def delete_group(group_id: str):
        try:
            group_service.delete_group(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.post("/groups/{group_id}/persons", response_model=Person, status_code=status.HTTP_201_CREATED, tags=["Persons"])
    def add_person(group_id: str, request: PersonRequest) -> Person:
        try:
            return group_service.add_person(group_id, request)
        except GroupServiceError as e:
            _raise_http(e)

    @app.get("/groups/{group_id}/persons", response_model=list[Person], tags=["Persons"])
    def list_persons(group_id: str) -> list[Person]:
        try:
            return group_service.list_persons(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.put("/groups/{group_id}/persons/{person_id}", response_model=Person, tags=["Persons"])
    def rename_person(group_id: str, person_id: str, request: PersonRequest) -> Person:
        try:
            return group_service.rename_person(group_id, person_id, request)
        except GroupServiceError as e:
            _raise_http(e)

    @app.delete("/groups/{group_id}/persons/{person_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Persons"])
    def remove_person(group_id: str, person_id: str):
        try:
            group_service.remove_person(group_id, person_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.post("/groups/{group_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED, tags=["Expenses"])
    def add_expense(group_id: str, request: ExpenseRequest) -> ExpenseResponse:
        try:
            return group_service.add_expense(group_id, request)
        except GroupServiceError as e:
            _raise_http(e)

    @app.get("/groups/{group_id}/expenses", response_model=list[GroupExpense], tags=["Expenses"])
    def list_expenses(group_id: str) -> list[GroupExpense]:
        try:
            return group_service.list_expenses(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.get("/groups/{group_id}/expenses/{expense_id}", response_model=ExpenseDetail, tags=["Expenses"])
    def get_expense(group_id: str, expense_id: str) -> ExpenseDetail:
        try:
            return group_service.get_expense(group_id, expense_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.put("/groups/{group_id}/expenses/{expense_id}", response_model=ExpenseResponse, tags=["Expenses"])
    def update_expense(group_id: str, expense_id: str, request: ExpenseRequest) -> ExpenseResponse:
        try:
            return group_service.update_expense(group_id, expense_id, request)
        except GroupServiceError as e:
            _raise_http(e)

    @app.delete("/groups/{group_id}/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Expenses"])
    def delete_expense(group_id: str, expense_id: str):
        try:
            group_service.delete_expense(group_id, expense_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.get("/groups/{group_id}/balances", response_model=list[Balance], tags=["Settlement"])
    def get_balances(group_id: str) -> list[Balance]:
        try:
            return group_service.get_balances(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.get("/groups/{group_id}/settlement", response_model=SettlementPlan, tags=["Settlement"])
    def get_settlement_plan(group_id: str) -> SettlementPlan:
        try:
            return group_service.get_settlement_plan(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.post("/groups/{group_id}/close", response_model=Settlement, tags=["Settlement"])
    def close_group(group_id: str) -> Settlement:
        try:
            return group_service.close_group(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.get("/groups/{group_id}/summary", response_class=PlainTextResponse, tags=["Settlement"])
    def share_summary(group_id: str) -> str:
        try:
            return group_service.share_summary(group_id)
        except GroupServiceError as e:
            _raise_http(e)

    @app.get("/backup", response_model=LedgerExport, tags=["Backup"])
    def export_data() -> LedgerExport:
        return group_service.export_data()

    @app.post("/backup", status_code=status.HTTP_204_NO_CONTENT, tags=["Backup"])
    def import_data(payload: LedgerExport):
        group_service.import_data(payload)

    app.state.group_service = group_service
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
