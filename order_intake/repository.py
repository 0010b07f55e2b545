# order_intake/repository.py

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from order_intake.errors import PersistenceError
from order_intake.models import Orders, utcnow


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class OrderRepository:
    def __init__(self, session: Session):
        self.session = session

    def insert(self, order: Orders) -> Orders:
        """
        Persist a new order and return it with its identity and timestamps.

        Raises:
            PersistenceError: If the database rejects the insert.
        """
        now = utcnow()
        order.created_at = now
        order.updated_at = now
        try:
            self.session.add(order)
            self.session.commit()
            self.session.refresh(order)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database commit failed for new order: {e}")
            raise PersistenceError("Failed to create order", detail=str(e)) from e
        logger.info(f"Order ID {order.order_id} stored.")
        return order

    def list_all(self) -> list[Orders]:
        """All orders, newest order_date first."""
        statement = select(Orders).order_by(Orders.order_date.desc(), Orders.order_id.desc())
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch orders: {e}")
            raise PersistenceError("Failed to fetch orders", detail=str(e)) from e
