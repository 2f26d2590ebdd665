"""
Repository for PriceRecord database operations (the price ledger)

Records are only ever appended. Ordering is by recorded_at, ties broken by
insertion id.
"""

from sqlalchemy.exc import SQLAlchemyError

from wishwatch.constants import DEFAULT_CURRENCY
from wishwatch.db import db, now_utc
from wishwatch.exceptions import NotFoundException, StorageException
from wishwatch.models import PriceRecord
from wishwatch.repositories.item_repository import ItemRepository
from wishwatch.utils import to_money


class PriceRecordRepository:
    """Repository for PriceRecord database operations"""

    @staticmethod
    def append(item_id, price, currency=DEFAULT_CURRENCY, recorded_at=None, commit=True):
        """Append a price observation for an item"""
        if ItemRepository.get_by_id(item_id) is None:
            raise NotFoundException("Item not found")

        try:
            record = PriceRecord(
                item_id=item_id,
                price=to_money(price),
                currency=currency or DEFAULT_CURRENCY,
                recorded_at=recorded_at or now_utc(),
            )
            db.session.add(record)
            if commit:
                db.session.commit()
            else:
                db.session.flush()
            return record
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to append price record for item {item_id}: {e}")

    @staticmethod
    def oldest(item_id):
        """Earliest observation, i.e. the first observed price"""
        return (
            PriceRecord.query.filter_by(item_id=item_id)
            .order_by(PriceRecord.recorded_at.asc(), PriceRecord.id.asc())
            .first()
        )

    @staticmethod
    def history(item_id, limit=None):
        if limit:
            # Most recent `limit` records, still returned oldest first
            recent = (
                PriceRecord.query.filter_by(item_id=item_id)
                .order_by(PriceRecord.recorded_at.desc(), PriceRecord.id.desc())
                .limit(limit)
                .all()
            )
            return list(reversed(recent))
        return (
            PriceRecord.query.filter_by(item_id=item_id)
            .order_by(PriceRecord.recorded_at.asc(), PriceRecord.id.asc())
            .all()
        )

    @staticmethod
    def count(item_id):
        return PriceRecord.query.filter_by(item_id=item_id).count()
