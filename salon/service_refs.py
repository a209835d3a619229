"""Resolve the service reference stored on a feedback row to a Service.

Feedback rows written by older clients carry the reference in several
shapes: the canonical ``service_id`` ("service42"), the same id without
its prefix ("42"), or the row's store id. Resolution tries each shape in
order and the first hit wins. A miss is not an error; callers render a
placeholder instead.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import Feedback, Service

SERVICE_PREFIX = "service"


@dataclass(frozen=True)
class ServiceSummary:
    category: str
    sub_category: str

    def to_dict(self) -> dict[str, str]:
        return {"category": self.category, "subCategory": self.sub_category}


class ByCanonicalId:
    name = "canonical"

    def applies(self, ref: str) -> bool:
        return True

    def lookup(self, ref: str) -> Optional[Service]:
        return Service.query.filter_by(service_id=ref).first()


class ByPrefixedId:
    name = "prefixed"

    def applies(self, ref: str) -> bool:
        return not ref.startswith(SERVICE_PREFIX)

    def lookup(self, ref: str) -> Optional[Service]:
        return Service.query.filter_by(service_id=f"{SERVICE_PREFIX}{ref}").first()


class ByStoreId:
    name = "store"

    def applies(self, ref: str) -> bool:
        return True

    def lookup(self, ref: str) -> Optional[Service]:
        return db.session.get(Service, ref)


DEFAULT_STRATEGIES = (ByCanonicalId(), ByPrefixedId(), ByStoreId())


def resolve_service_reference(ref, strategies=DEFAULT_STRATEGIES) -> Optional[ServiceSummary]:
    """Return the summary of the service ``ref`` points at, or None."""
    if ref is None:
        return None
    ref = str(ref).strip()
    if not ref:
        return None

    for strategy in strategies:
        if not strategy.applies(ref):
            continue
        service = strategy.lookup(ref)
        if service is not None:
            return ServiceSummary(service.category, service.sub_category)
    return None


class ServiceReferenceResolver:
    """Batch resolver used when listing feedback.

    Each distinct reference is looked up once per listing. A failing lookup
    is logged and treated as unresolved so one bad row never sinks the
    whole response.
    """

    def __init__(self, strategies=DEFAULT_STRATEGIES) -> None:
        self.strategies = tuple(strategies)
        self._cache: dict[str, Optional[ServiceSummary]] = {}

    def resolve(self, ref) -> Optional[ServiceSummary]:
        key = "" if ref is None else str(ref).strip()
        if key in self._cache:
            return self._cache[key]
        try:
            summary = resolve_service_reference(key, self.strategies)
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.warning(f"Service lookup failed for reference {key!r}: {exc}")
            summary = None
        if summary is None and key:
            current_app.logger.warning(f"Unresolved service reference {key!r}")
        self._cache[key] = summary
        return summary

    def serialize(self, feedback: Feedback) -> dict[str, object]:
        data = feedback.to_dict()
        summary = self.resolve(feedback.service_ref)
        data["serviceDetails"] = summary.to_dict() if summary else None
        return data

    def serialize_all(self, rows: Iterable[Feedback]) -> list[dict[str, object]]:
        return [self.serialize(row) for row in rows]
