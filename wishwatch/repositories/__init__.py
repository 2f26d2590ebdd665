"""
Repositories package

Each repository wraps the database operations for one model. Write
operations commit, roll back on SQLAlchemyError and surface failures as
StorageException (or ConflictException for uniqueness violations).

Usage:
    from wishwatch.repositories.wishlist_repository import WishlistRepository
    wishlist = WishlistRepository.get_by_user_and_id(user_id, wishlist_id)
"""
