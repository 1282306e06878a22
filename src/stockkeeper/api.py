"""FastAPI router configuration."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Sequence

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

from . import analytics, backup, inventory, ledger, reports, schemas
from .assistant import (
    Assistant,
    HttpAssistant,
    analysis_prompt,
    build_context,
    description_prompt,
    planning_prompt,
)
from .config import Settings, get_settings
from .errors import (
    AssistantUnavailable,
    InsufficientStock,
    InvalidAdjustment,
    InvalidBackupFormat,
    InvalidItem,
    ItemNotFound,
    StorageUnavailable,
)
from .reports import DocumentRenderer
from .store import RecordStore
from .timestamps import end_of_day_ms, now_ms, start_of_day_ms

router = APIRouter()


def provide_settings() -> Settings:
    """Dependency returning the active :class:`Settings` instance."""

    return get_settings()


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_assistant(request: Request) -> Assistant | None:
    return request.app.state.assistant


def get_document_renderer(request: Request) -> DocumentRenderer | None:
    return request.app.state.document_renderer


@router.get("/health", response_model=schemas.HealthStatus, tags=["system"])
async def health_check(settings: Settings = Depends(provide_settings)) -> schemas.HealthStatus:
    return schemas.HealthStatus(environment=settings.environment)


@router.get("/items", response_model=list[schemas.InventoryItem], tags=["items"])
async def list_items(store: RecordStore = Depends(get_store)) -> Sequence[schemas.InventoryItem]:
    return await store.list_items()


@router.post(
    "/items",
    response_model=schemas.InventoryItem,
    status_code=status.HTTP_201_CREATED,
    tags=["items"],
)
async def create_item(
    payload: schemas.ItemCreate, store: RecordStore = Depends(get_store)
) -> schemas.InventoryItem:
    return await inventory.create_item(store, payload)


@router.get("/items/{item_id}", response_model=schemas.InventoryItem, tags=["items"])
async def get_item(item_id: str, store: RecordStore = Depends(get_store)) -> schemas.InventoryItem:
    try:
        return await store.get_item(item_id)
    except ItemNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.put("/items/{item_id}", response_model=schemas.InventoryItem, tags=["items"])
async def update_item(
    item_id: str,
    payload: schemas.ItemUpdate,
    store: RecordStore = Depends(get_store),
) -> schemas.InventoryItem:
    try:
        return await inventory.update_item(store, item_id, payload)
    except ItemNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidItem as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["items"])
async def delete_item(item_id: str, store: RecordStore = Depends(get_store)) -> None:
    await inventory.delete_item(store, item_id)


@router.post(
    "/items/{item_id}/adjustments",
    response_model=schemas.AdjustmentResult,
    status_code=status.HTTP_201_CREATED,
    tags=["movements"],
)
async def adjust_stock(
    item_id: str,
    payload: schemas.StockAdjustment,
    store: RecordStore = Depends(get_store),
) -> schemas.AdjustmentResult:
    try:
        return await ledger.adjust_stock(
            store, item_id, payload.quantity, payload.type, payload.reason
        )
    except ItemNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (InsufficientStock, InvalidAdjustment) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get(
    "/items/{item_id}/movements", response_model=list[schemas.StockMovement], tags=["movements"]
)
async def list_item_movements(
    item_id: str, store: RecordStore = Depends(get_store)
) -> Sequence[schemas.StockMovement]:
    return await store.movements_for_item(item_id)


async def _search_movements(
    store: RecordStore,
    settings: Settings,
    search: str | None,
    start: date | None,
    end: date | None,
) -> list[schemas.StockMovement]:
    tz = settings.tz
    movements = await store.movements_between(
        start_of_day_ms(start, tz) if start else None,
        end_of_day_ms(end, tz) if end else None,
    )
    return ledger.search_movements(movements, text=search, tz=tz)


@router.get("/movements", response_model=list[schemas.StockMovement], tags=["movements"])
async def list_movements(
    search: str | None = None,
    start: date | None = None,
    end: date | None = None,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> Sequence[schemas.StockMovement]:
    return await _search_movements(store, settings, search, start, end)


def _attachment(content: bytes | str, media_type: str, prefix: str, extension: str) -> Response:
    filename = f"{prefix}_{datetime.now().strftime('%Y-%m-%d')}.{extension}"
    return Response(
        content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/movements/export.xls", tags=["reports"])
async def export_movements_xls(
    search: str | None = None,
    start: date | None = None,
    end: date | None = None,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> Response:
    movements = await _search_movements(store, settings, search, start, end)
    content = reports.movements_to_xls(
        movements,
        filter_description=reports.describe_filters(search, start, end),
        tz=settings.tz,
    )
    return _attachment(content, "application/vnd.ms-excel", "movements", "xls")


@router.get("/movements/export.csv", tags=["reports"])
async def export_movements_csv(
    search: str | None = None,
    start: date | None = None,
    end: date | None = None,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> Response:
    movements = await _search_movements(store, settings, search, start, end)
    content = reports.movements_to_csv(movements, tz=settings.tz)
    return _attachment(content, "text/csv", "movements", "csv")


@router.get("/movements/export.pdf", tags=["reports"])
async def export_movements_pdf(
    search: str | None = None,
    start: date | None = None,
    end: date | None = None,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
    renderer: DocumentRenderer | None = Depends(get_document_renderer),
) -> Response:
    if renderer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No document renderer configured.",
        )
    movements = await _search_movements(store, settings, search, start, end)
    content = renderer.render(movements, reports.describe_filters(search, start, end))
    return _attachment(content, "application/pdf", "movements", "pdf")


@router.get("/analytics/dashboard", response_model=schemas.Dashboard, tags=["analytics"])
async def get_dashboard(
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> schemas.Dashboard:
    items = await store.list_items()
    movements = await store.list_movements()
    return analytics.dashboard(items, movements, recent=settings.recent_movements_limit)


@router.get(
    "/analytics/low-stock", response_model=list[schemas.InventoryItem], tags=["analytics"]
)
async def list_low_stock(
    store: RecordStore = Depends(get_store),
) -> Sequence[schemas.InventoryItem]:
    return analytics.low_stock(await store.list_items())


@router.get("/analytics/categories", response_model=list[str], tags=["analytics"])
async def list_categories(store: RecordStore = Depends(get_store)) -> Sequence[str]:
    return analytics.categories(await store.list_items())


async def _yearly_report(
    store: RecordStore,
    settings: Settings,
    year: int | None,
    search: str | None,
    category: str | None,
    top: int | None,
) -> schemas.YearlyReport:
    tz = settings.tz
    return analytics.yearly_report(
        await store.list_items(),
        await store.list_movements(),
        year if year is not None else datetime.now(tz).year,
        search=search,
        category=category,
        top=top or settings.top_items_limit,
        tz=tz,
    )


@router.get("/analytics/yearly", response_model=schemas.YearlyReport, tags=["analytics"])
async def get_yearly_report(
    year: int | None = None,
    search: str | None = None,
    category: str | None = None,
    top: int | None = Query(default=None, ge=1),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> schemas.YearlyReport:
    return await _yearly_report(store, settings, year, search, category, top)


@router.get("/config", response_model=schemas.DriveConfig, tags=["config"])
async def get_config(store: RecordStore = Depends(get_store)) -> schemas.DriveConfig:
    return await store.get_config()


@router.put("/config", response_model=schemas.DriveConfig, tags=["config"])
async def put_config(
    payload: schemas.DriveConfig, store: RecordStore = Depends(get_store)
) -> schemas.DriveConfig:
    return await store.put_config(payload)


@router.get("/backup", tags=["backup"])
async def export_backup(store: RecordStore = Depends(get_store)) -> Response:
    exported_at = now_ms()
    document = await backup.export_all(store, now=exported_at)
    config = await store.get_config()
    await store.put_config(config.model_copy(update={"last_sync": exported_at}))
    return _attachment(document, "application/json", "stockkeeper_backup", "json")


@router.post("/backup", response_model=schemas.ImportSummary, tags=["backup"])
async def import_backup(
    request: Request, store: RecordStore = Depends(get_store)
) -> schemas.ImportSummary:
    body = await request.body()
    try:
        return await backup.import_all(store, body)
    except InvalidBackupFormat as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc


def _require_assistant(assistant: Assistant | None) -> Assistant:
    if assistant is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No assistant configured.",
        )
    return assistant


@router.post("/assistant/ask", response_model=schemas.AssistantAnswer, tags=["assistant"])
async def ask_assistant(
    payload: schemas.AssistantQuestion,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
    assistant: Assistant | None = Depends(get_assistant),
) -> schemas.AssistantAnswer:
    assistant = _require_assistant(assistant)
    context = build_context(
        await store.list_items(), await store.list_movements(), tz=settings.tz
    )
    answer = await assistant.ask(context, payload.question)
    return schemas.AssistantAnswer(answer=answer)


@router.post("/assistant/plan", response_model=schemas.AssistantAnswer, tags=["assistant"])
async def plan_with_assistant(
    year: int | None = None,
    search: str | None = None,
    category: str | None = None,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
    assistant: Assistant | None = Depends(get_assistant),
) -> schemas.AssistantAnswer:
    assistant = _require_assistant(assistant)
    report = await _yearly_report(store, settings, year, search, category, None)
    context = build_context(
        await store.list_items(), await store.list_movements(), tz=settings.tz
    )
    answer = await assistant.ask(context, planning_prompt(report))
    return schemas.AssistantAnswer(answer=answer)


@router.post("/assistant/analyze", response_model=schemas.AssistantAnswer, tags=["assistant"])
async def analyze_with_assistant(
    store: RecordStore = Depends(get_store),
    assistant: Assistant | None = Depends(get_assistant),
) -> schemas.AssistantAnswer:
    assistant = _require_assistant(assistant)
    answer = await assistant.generate(analysis_prompt(await store.list_movements()))
    return schemas.AssistantAnswer(answer=answer)


@router.post("/assistant/describe", response_model=schemas.AssistantAnswer, tags=["assistant"])
async def describe_with_assistant(
    payload: schemas.DescriptionRequest,
    assistant: Assistant | None = Depends(get_assistant),
) -> schemas.AssistantAnswer:
    """Draft a product description for the item form."""

    assistant = _require_assistant(assistant)
    answer = await assistant.generate(description_prompt(payload.name, payload.category))
    return schemas.AssistantAnswer(answer=answer.strip())


async def _service_unavailable(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


def _default_assistant(settings: Settings) -> Assistant | None:
    if not settings.assistant_endpoint:
        return None
    return HttpAssistant(
        settings.assistant_endpoint,
        api_key=settings.assistant_api_key,
        model=settings.assistant_model,
        timeout=settings.assistant_timeout,
    )


def create_app(
    settings: Settings | None = None,
    *,
    store: RecordStore | None = None,
    assistant: Assistant | None = None,
    document_renderer: DocumentRenderer | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    store = store or RecordStore.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.init()
        yield
        await store.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.store = store
    app.state.assistant = assistant or _default_assistant(settings)
    app.state.document_renderer = document_renderer
    app.dependency_overrides[provide_settings] = lambda: settings
    app.add_exception_handler(StorageUnavailable, _service_unavailable)
    app.add_exception_handler(AssistantUnavailable, _service_unavailable)
    app.include_router(router)
    return app


app = create_app()


__all__ = ["app", "create_app"]
