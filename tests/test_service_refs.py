"""Tests for resolving feedback service references."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from salon.extensions import db
from salon.models import Feedback, Service
from salon.service_refs import (DEFAULT_STRATEGIES, ByCanonicalId, ByPrefixedId, ByStoreId,
                                ServiceReferenceResolver, ServiceSummary, resolve_service_reference)


def _add_service(service_id: str = "service42", category: str = "Hair", sub: str = "Haircut") -> str:
    service = Service(
        service_id=service_id,
        category=category,
        sub_category=sub,
        duration="1h",
        price=Decimal("50.00"),
        available=True,
    )
    db.session.add(service)
    db.session.commit()
    return service.id


def test_strategy_order_is_inspectable() -> None:
    assert [type(s) for s in DEFAULT_STRATEGIES] == [ByCanonicalId, ByPrefixedId, ByStoreId]


def test_all_reference_formats_resolve_to_the_same_service(app) -> None:
    with app.app_context():
        store_id = _add_service()
        expected = ServiceSummary("Hair", "Haircut")

        assert resolve_service_reference("service42") == expected
        assert resolve_service_reference("42") == expected
        assert resolve_service_reference(store_id) == expected


def test_prefixed_strategy_skips_already_prefixed_references(app) -> None:
    with app.app_context():
        assert ByPrefixedId().applies("42")
        assert not ByPrefixedId().applies("service42")


def test_unknown_reference_is_unresolved(app) -> None:
    with app.app_context():
        _add_service()
        assert resolve_service_reference("nope") is None
        assert resolve_service_reference("") is None
        assert resolve_service_reference(None) is None


def test_batch_resolver_attaches_details_and_placeholder(app) -> None:
    with app.app_context():
        _add_service()
        good = Feedback(user_id="u1", service_ref="42", message="Great", star_rating=5,
                        date_of_service=date(2030, 6, 15))
        orphan = Feedback(user_id="u1", service_ref="service999", message="Hmm", star_rating=3,
                          date_of_service=date(2030, 6, 15))
        db.session.add_all([good, orphan])
        db.session.commit()

        rows = ServiceReferenceResolver().serialize_all([good, orphan])

        assert rows[0]["serviceDetails"] == {"category": "Hair", "subCategory": "Haircut"}
        assert rows[1]["serviceDetails"] is None


def test_batch_resolver_caches_lookups(app) -> None:
    calls = []

    class CountingStrategy(ByCanonicalId):
        def lookup(self, ref):
            calls.append(ref)
            return super().lookup(ref)

    with app.app_context():
        _add_service()
        resolver = ServiceReferenceResolver(strategies=[CountingStrategy()])
        resolver.resolve("service42")
        resolver.resolve("service42")

    assert calls == ["service42"]


def test_batch_resolver_survives_a_failing_lookup(app) -> None:
    from sqlalchemy.exc import OperationalError

    class BrokenStrategy(ByCanonicalId):
        def lookup(self, ref):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

    with app.app_context():
        resolver = ServiceReferenceResolver(strategies=[BrokenStrategy()])
        assert resolver.resolve("service1") is None
