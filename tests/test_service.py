# tests/test_service.py

import io
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session
from starlette.datastructures import Headers, UploadFile
from order_intake.db import engine
from order_intake.errors import (
    ErrorKind,
    MissingPaymentProof,
    OrderValidationError,
    PersistenceError,
    TooManyFiles,
    UnsupportedMediaType,
)
from order_intake.models import Orders, OrderStatus
from order_intake.repository import OrderRepository
from order_intake.service import OrderIntakeService, OrderQueryService
from order_intake.uploads import UploadStorage


def make_upload(filename: str = "valid.jpg", content_type: str = "image/jpeg", data: bytes = b"\xff\xd8\xff0000") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


class FailingRepository:
    """Stands in for a database that rejects every insert."""

    def __init__(self):
        self.inserted = []

    def insert(self, order):
        self.inserted.append(order)
        raise PersistenceError("Failed to create order", detail="connection refused")


class RecordingRepository:
    def __init__(self):
        self.inserted = []

    def insert(self, order):
        order.order_id = len(self.inserted) + 1
        self.inserted.append(order)
        return order


@pytest.fixture(name="storage")
def storage_fixture(tmp_path):
    return UploadStorage(tmp_path / "uploads")


def stored_files(storage):
    return list(storage.root.iterdir())


# -------------------- Intake --------------------

@pytest.mark.asyncio
async def test_submit_builds_pending_order(storage, order_form):
    repository = RecordingRepository()
    service = OrderIntakeService(storage, repository)

    order = await service.submit(order_form, [make_upload()])

    assert order.order_id == 1
    assert order.status == OrderStatus.PENDING
    assert order.customer_phone == "1234567890"
    assert order.total_amount == 100
    assert order.products == [
        {"product_id": "p1", "name": "Widget", "price": 100.0, "quantity": 1, "image": None}
    ]
    [stored] = stored_files(storage)
    assert order.payment_screenshot == f"/uploads/{stored.name}"


@pytest.mark.asyncio
async def test_missing_file_is_rejected_before_validation(storage):
    service = OrderIntakeService(storage, RecordingRepository())

    with pytest.raises(MissingPaymentProof):
        await service.submit({}, [])

    # A file part without a filename is what browsers send for an empty input
    with pytest.raises(MissingPaymentProof):
        await service.submit({}, [make_upload(filename="")])


@pytest.mark.asyncio
async def test_more_than_one_file_is_rejected(storage, order_form):
    service = OrderIntakeService(storage, RecordingRepository())

    with pytest.raises(TooManyFiles):
        await service.submit(order_form, [make_upload(), make_upload("second.png", "image/png")])

    assert stored_files(storage) == []


@pytest.mark.asyncio
async def test_pdf_is_rejected_even_when_payload_is_invalid(storage):
    service = OrderIntakeService(storage, RecordingRepository())

    with pytest.raises(UnsupportedMediaType):
        await service.submit({"phone": "12"}, [make_upload("proof.pdf", "application/pdf")])

    assert stored_files(storage) == []


@pytest.mark.asyncio
async def test_validation_failure_removes_stored_file(storage, order_form):
    repository = RecordingRepository()
    service = OrderIntakeService(storage, repository)
    order_form["phone"] = "12345"

    with pytest.raises(OrderValidationError) as exc_info:
        await service.submit(order_form, [make_upload()])

    assert exc_info.value.fields_of(ErrorKind.INVALID_EMAIL_OR_PHONE) == ["phone"]
    assert stored_files(storage) == []
    assert repository.inserted == []


@pytest.mark.asyncio
async def test_persistence_failure_removes_stored_file(storage, order_form):
    repository = FailingRepository()
    service = OrderIntakeService(storage, repository)

    with pytest.raises(PersistenceError):
        await service.submit(order_form, [make_upload()])

    assert len(repository.inserted) == 1
    assert stored_files(storage) == []


@pytest.mark.asyncio
async def test_cleanup_failure_does_not_replace_original_error(storage, order_form, monkeypatch):
    service = OrderIntakeService(storage, RecordingRepository())
    monkeypatch.setattr(storage, "delete", lambda path: False)
    order_form["products"] = "[]"

    with pytest.raises(OrderValidationError) as exc_info:
        await service.submit(order_form, [make_upload()])

    assert exc_info.value.kind == ErrorKind.EMPTY_CART


# -------------------- Repository and Query --------------------

def make_order(name: str, order_date: datetime) -> Orders:
    return Orders(
        customer_name=name,
        customer_email=f"{name.lower()}@example.com",
        customer_phone="1234567890",
        customer_address="1 Main St",
        customer_pincode="000001",
        customer_city="Pune",
        products=[{"product_id": "p1", "name": "Widget", "price": 10.0, "quantity": 1, "image": None}],
        total_amount=10.0,
        payment_screenshot=f"/uploads/{name}.jpg",
        order_date=order_date,
    )


def test_repository_assigns_identity_and_timestamps(create_test_database):
    with Session(engine) as session:
        order = OrderRepository(session).insert(make_order("Asha", datetime.now(timezone.utc)))

        assert order.order_id is not None
        assert order.status == OrderStatus.PENDING
        assert order.created_at is not None
        assert order.updated_at is not None


def test_list_orders_newest_first(create_test_database):
    t1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    t2 = t1 + timedelta(hours=1)
    t3 = t2 + timedelta(hours=1)

    with Session(engine) as session:
        repository = OrderRepository(session)
        for name, when in [("Two", t2), ("One", t1), ("Three", t3)]:
            repository.insert(make_order(name, when))

        orders = OrderQueryService(repository).list_orders()

    assert [order.customer_name for order in orders] == ["Three", "Two", "One"]


def test_list_orders_empty(create_test_database):
    with Session(engine) as session:
        assert OrderQueryService(OrderRepository(session)).list_orders() == []
