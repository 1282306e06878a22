"""Context and prompts for questions answered by a text generation service.

The service itself is a collaborator behind the :class:`Assistant` protocol.
The snapshot handed to it is read-only; answers never feed back into storage.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Protocol

import httpx

from . import analytics
from .errors import AssistantUnavailable
from .schemas import MONTH_LABELS, InventoryItem, MovementType, StockMovement, YearlyReport
from .timestamps import from_ms

logger = logging.getLogger(__name__)

RECENT_MOVEMENTS = 30
TOP_SELLERS = 5


@dataclass(frozen=True)
class AssistantContext:
    total_units: int
    stock_value: float
    items: tuple[str, ...] = field(default_factory=tuple)
    movements: tuple[str, ...] = field(default_factory=tuple)


class Assistant(Protocol):
    async def generate(self, prompt: str) -> str:
        ...

    async def ask(self, context: AssistantContext, question: str) -> str:
        ...


def build_context(
    items: Sequence[InventoryItem],
    movements: Sequence[StockMovement],
    *,
    recent: int = RECENT_MOVEMENTS,
    tz: tzinfo = timezone.utc,
) -> AssistantContext:
    kpis = analytics.inventory_kpis(items)
    item_lines = tuple(
        f"{item.name} (category: {item.category or '-'}, qty: {item.quantity}, "
        f"price: {item.price:.2f})"
        for item in items
    )
    movement_lines = tuple(
        f"[{from_ms(m.date, tz).date().isoformat()}] {m.type.value} {m.quantity} x {m.item_name}"
        for m in analytics.recent_movements(movements, recent)
    )
    return AssistantContext(
        total_units=kpis.total_units,
        stock_value=kpis.total_value,
        items=item_lines,
        movements=movement_lines,
    )


def question_prompt(context: AssistantContext, question: str) -> str:
    items = "; ".join(context.items) or "no items"
    movements = "\n".join(context.movements) or "no movements"
    return (
        "You are the assistant of a small warehouse. Answer using ONLY the data below.\n\n"
        "TOTALS:\n"
        f"- Units in stock: {context.total_units}\n"
        f"- Stock value: {context.stock_value:.2f}\n\n"
        f"ITEMS:\n{items}\n\n"
        f"LATEST MOVEMENTS:\n{movements}\n\n"
        f'QUESTION: "{question}"\n\n'
        "Be concise. If the data does not contain the answer, say so."
    )


def planning_prompt(report: YearlyReport) -> str:
    """Seasonality prompt for the yearly report of outgoing stock."""

    if report.category:
        scope = f"category: {report.category}"
    elif report.search:
        scope = f"filter: {report.search}"
    else:
        scope = "all items"
    lines = []
    for entry in report.top_items:
        if entry.peak_month is None:
            continue
        peak = next(row for row in report.matrix if row.name == entry.name).months[entry.peak_month]
        lines.append(f"- {entry.name}: peak in {MONTH_LABELS[entry.peak_month]} ({peak} units)")
    seasonality = "\n".join(lines) or "No relevant data for the current filters."
    return (
        f"Analyse the {report.year} outgoing stock ({scope}) to plan production.\n\n"
        f"Top items and seasonality:\n{seasonality}\n\n"
        f"Yearly volume for the selection: {report.total_units} units.\n\n"
        "Acting as a supply chain manager, suggest when to start building stock for "
        "these items. Use short bullet points."
    )


def analysis_prompt(movements: Sequence[StockMovement], *, top: int = TOP_SELLERS) -> str:
    """Quick restocking prompt built from the whole outgoing history."""

    outgoing = [m for m in movements if m.type is MovementType.OUT]
    sellers = "\n".join(
        f"- {name}: {total} units" for name, total in analytics.top_items(outgoing, top)
    )
    return (
        "Act as a production and sales analyst.\n\n"
        f"Units shipped so far: {sum(m.quantity for m in outgoing)}\n"
        f"Top {top} items by units shipped:\n{sellers or 'none yet'}\n\n"
        "Which items should the next production or reorder round favour? "
        "Give three short bullet points and a one-line conclusion on the trend."
    )


def description_prompt(name: str, category: str = "") -> str:
    return (
        "Write a catchy, technical product description of at most 30 words "
        "for a warehouse item.\n"
        f"Name: {name}\n"
        f"Category: {category or '-'}\n"
        "Answer with the description only."
    )


class HttpAssistant:
    """Posts prompts as JSON to a text generation endpoint.

    The endpoint receives ``{"model": ..., "prompt": ...}`` and must answer
    with a JSON object carrying a ``text`` field.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        model: str = "gemini-2.5-flash",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    json={"model": self.model, "prompt": prompt},
                    headers=headers,
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Assistant request to %s failed: %s", self.endpoint, exc)
            raise AssistantUnavailable(f"Assistant request failed: {exc}") from exc
        except ValueError as exc:
            raise AssistantUnavailable("Assistant answered with invalid JSON") from exc

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise AssistantUnavailable("Assistant answer did not contain any text")
        return text

    async def ask(self, context: AssistantContext, question: str) -> str:
        return await self.generate(question_prompt(context, question))


__all__ = [
    "AssistantContext",
    "Assistant",
    "build_context",
    "question_prompt",
    "planning_prompt",
    "analysis_prompt",
    "description_prompt",
    "HttpAssistant",
]
