# contest_portal/repos/cart_repo.py
from typing import Any, Dict, List

from sqlalchemy import select, update

from contest_portal.data.models.cart import CartModel
from contest_portal.data.models.cart_item import CartItemModel
from contest_portal.domain.statuses import CartStatus
from contest_portal.repos.base import BaseRepo


class CartRepo(BaseRepo):
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.user_id == user_id, CartModel.status == CartStatus.ACTIVE)
            .order_by(CartModel.id)
        ).scalars().first()

    def create_cart(self, cart: CartModel) -> CartModel:
        return self.add(cart)

    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel).where(CartItemModel.cart_id == cart_id).order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def get_items_by_ids(self, item_ids: List[int]) -> List[CartItemModel]:
        if not item_ids:
            return []
        return list(
            self.db.execute(
                select(CartItemModel).where(CartItemModel.id.in_(item_ids)).order_by(CartItemModel.id)
            ).scalars()
        )

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        return self.add(item)

    def delete_cart_item(self, item: CartItemModel):
        self.db.delete(item)
        self.db.flush()

    def delete_cart(self, cart: CartModel):
        self.db.delete(cart)
        self.db.flush()

    def update_cart_version(self, cart_id: int, old_version: int, new_data: Dict[str, Any]) -> int:
        # optimistic locking: UPDATE ... WHERE id = :id AND version = :old
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount
