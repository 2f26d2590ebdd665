"""
Repository for Store and ShippingRule database operations
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from wishwatch.db import db
from wishwatch.exceptions import ConflictException, StorageException
from wishwatch.models import ShippingRule, Store


class StoreRepository:
    """Repository for Store and ShippingRule database operations"""

    @staticmethod
    def get_by_id(id):
        return db.session.get(Store, id)

    @staticmethod
    def get_by_domains(domains):
        """Map of domain -> Store for the known domains in the list"""
        if not domains:
            return {}
        return {store.domain: store for store in Store.query.filter(Store.domain.in_(domains)).all()}

    @staticmethod
    def get_rules_for_country(store_ids, country_code):
        """Map of store_id -> ShippingRule for one country"""
        if not store_ids:
            return {}
        rules = ShippingRule.query.filter(
            ShippingRule.store_id.in_(store_ids), ShippingRule.country_code == country_code.upper()
        ).all()
        return {rule.store_id: rule for rule in rules}

    @staticmethod
    def create(**kwargs):
        """Create new Store record"""
        try:
            store = Store(**kwargs)
            db.session.add(store)
            db.session.commit()
            db.session.refresh(store)
            return store
        except IntegrityError:
            db.session.rollback()
            raise ConflictException(f"A store with domain '{kwargs.get('domain')}' already exists")
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to create store: {e}")

    @staticmethod
    def create_rule(**kwargs):
        """Create new ShippingRule record"""
        try:
            rule = ShippingRule(**kwargs)
            db.session.add(rule)
            db.session.commit()
            db.session.refresh(rule)
            return rule
        except IntegrityError:
            db.session.rollback()
            raise ConflictException(
                f"A shipping rule for country '{kwargs.get('country_code')}' already exists for this store"
            )
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to create shipping rule: {e}")
