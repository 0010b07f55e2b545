# order_intake/service.py

import logging
from typing import Any, Mapping, Sequence

from starlette.concurrency import run_in_threadpool

from order_intake.errors import MissingPaymentProof, TooManyFiles
from order_intake.models import Orders, OrderStatus, utcnow
from order_intake.repository import OrderRepository
from order_intake.uploads import MAX_UPLOAD_BYTES, StoredFile, Upload, UploadStorage, accept_upload
from order_intake.validation import validate_order


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class OrderIntakeService:
    """
    Runs a submission through upload, validation and persistence.

    The stored screenshot is removed again whenever a later stage fails, so
    rejected submissions leave no file behind.
    """

    def __init__(self, storage: UploadStorage, repository: OrderRepository, max_bytes: int = MAX_UPLOAD_BYTES):
        self.storage = storage
        self.repository = repository
        self.max_bytes = max_bytes

    async def submit(self, payload: Mapping[str, Any], files: Sequence[Upload]) -> Orders:
        """
        Create an order from a multipart submission.

        Args:
            payload (Mapping[str, Any]): Text fields of the submission.
            files (Sequence[Upload]): File parts sent as the payment screenshot.

        Returns:
            Orders: The stored order.

        Raises:
            IntakeError: The specific reason the submission was rejected.
        """
        uploads = [upload for upload in files if upload.filename]
        if not uploads:
            raise MissingPaymentProof()
        if len(uploads) > 1:
            raise TooManyFiles()

        stored = await accept_upload(uploads[0], self.storage, self.max_bytes)
        try:
            draft = validate_order(payload)
            order = Orders(
                customer_name=draft.customer_info.name,
                customer_email=draft.customer_info.email,
                customer_phone=draft.customer_info.phone,
                customer_address=draft.customer_info.address,
                customer_pincode=draft.customer_info.pincode,
                customer_city=draft.customer_info.city,
                products=[line.model_dump() for line in draft.products],
                total_amount=draft.total_amount,
                payment_screenshot=stored.url,
                status=OrderStatus.PENDING,
                order_date=utcnow(),
            )
            # The session is synchronous; keep the commit off the event loop
            order = await run_in_threadpool(self.repository.insert, order)
        except Exception:
            self.discard(stored)
            raise

        logger.info(f"Order ID {order.order_id} created with screenshot {stored.name}")
        return order

    def discard(self, stored: StoredFile) -> None:
        logger.info(f"Discarding stored screenshot {stored.name}")
        if not self.storage.delete(stored.path):
            logger.warning(f"Screenshot {stored.name} could not be removed and is orphaned")


class OrderQueryService:
    def __init__(self, repository: OrderRepository):
        self.repository = repository

    def list_orders(self) -> list[Orders]:
        return self.repository.list_all()
