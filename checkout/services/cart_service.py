# checkout/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from checkout.data.database import unit_of_work
from checkout.data.models.cart import CartModel
from checkout.data.models.cart_item import CartItemModel
from checkout.domain.errors import (
    CartEmpty,
    CartItemNotFound,
    ConcurrencyConflict,
    InsufficientStock,
    ProductNotFound,
    ValidationError,
)
from checkout.repos.cart_repo import CartRepo
from checkout.services.product_client import ProductClient
from checkout.services.promo_code_service import PromoCodeService
from checkout.services.user_service import UserService
from checkout.services.whatsapp_service import WhatsAppService
from checkout.utils.money import ZERO, money, percent_of, utcnow
from checkout.utils.settings import ANONYMOUS_USER_ID
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Prosta implementacja cqrs i proste use case dla domeny cart
    commands (add, update, remove, clear, promo) modyfikuja stan
    query (get, count, linki whatsapp) tylko odczyt, ceny liczone przy kazdym odczycie

    user_id = None -> wspolny koszyk anonimowy
    """

    def __init__(self, db: Session, product_client: ProductClient, whatsapp: WhatsAppService | None = None):
        self.db = db
        self.repo = CartRepo(db)
        self.users = UserService(db)
        self.promos = PromoCodeService(db)
        self.product_client = product_client
        self.whatsapp = whatsapp or WhatsAppService()

    #query - odczyt
    def get_cart(self, user_id: int | None) -> Dict[str, Any]:
        if user_id is None:
            # anonimowy bez koszyka - pusty widok, nic nie zapisujemy
            cart = self.repo.get_cart_by_user(ANONYMOUS_USER_ID)
            if cart is None:
                return self._empty_view()
        else:
            cart = self.get_or_create(user_id)

        return self._to_view(cart)

    def count_items(self, user_id: int | None) -> int:
        cart = self.repo.get_cart_by_user(self._owner_id(user_id))
        if cart is None:
            return 0

        count = 0
        for item in self.repo.get_cart_items(cart.id):
            product = self.product_client.fetch_product(item.product_id)
            if product and product["is_active"]:
                count += item.quantity
        return count

    #commands
    def get_or_create(self, user_id: int | None) -> CartModel:
        with unit_of_work(self.db):
            if user_id is None:
                owner_id = self.users.get_or_create_anonymous().id
            else:
                owner_id = self.users.require_user(user_id).id

            cart = self.repo.get_cart_by_user(owner_id)
            if cart:
                return cart

            cart = self.repo.create_cart(
                CartModel(user_id=owner_id, version=1, created_at=utcnow())
            )
            logger.info(f"Utworzono nowy koszyk {cart.id} dla uzytkownika {owner_id}")
            return cart

    def add_item(self, user_id: int | None, product_id: int, quantity: int) -> Dict[str, Any]:
        product, unit_price = self._priced_product(product_id, quantity)

        with unit_of_work(self.db):
            cart = self.get_or_create(user_id)
            existing_item = self.repo.get_cart_item(cart.id, product_id)

            if existing_item:
                new_quantity = existing_item.quantity + quantity
                if product["stock_quantity"] < new_quantity:
                    raise InsufficientStock(
                        available=product["stock_quantity"],
                        in_cart=existing_item.quantity,
                    )

                logger.info(
                    f"Produkt {product_id} juz jest w koszyku, zwiekszam ilosc "
                    f"z {existing_item.quantity} do {new_quantity}"
                )
                existing_item.quantity = new_quantity
                existing_item.unit_price = unit_price  # update ceny
                existing_item.updated_at = utcnow()
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Dodaje nowy produkt {product_id} do koszyka {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_id=product_id,
                        quantity=quantity,
                        unit_price=unit_price,
                        created_at=utcnow(),
                    )
                )

            self._bump_version(cart)

        return self._to_view(cart)

    def update_item(self, user_id: int | None, item_id: int, quantity: int) -> Dict[str, Any]:
        with unit_of_work(self.db):
            cart = self.get_or_create(user_id)
            item = self._require_item(cart, item_id)

            if quantity <= 0:
                # ilosc <= 0 usuwa pozycje
                logger.info(f"Usuwanie pozycji {item_id} z koszyka {cart.id} (ilosc {quantity})")
                self.repo.delete_cart_item(item)
            else:
                product = self.product_client.fetch_product(item.product_id)
                if product is not None and product["stock_quantity"] < quantity:
                    raise InsufficientStock(available=product["stock_quantity"])

                item.quantity = quantity
                item.updated_at = utcnow()
                self.db.flush()

            self._bump_version(cart)

        return self._to_view(cart)

    def remove_item(self, user_id: int | None, item_id: int) -> Dict[str, Any]:
        with unit_of_work(self.db):
            cart = self.get_or_create(user_id)
            item = self._require_item(cart, item_id)

            logger.info(f"Usuwanie produktu {item.product_id} z koszyka {cart.id}")
            self.repo.delete_cart_item(item)
            self._bump_version(cart)

        return self._to_view(cart)

    def clear(self, user_id: int | None) -> bool:
        with unit_of_work(self.db):
            cart = self.repo.get_cart_by_user(self._owner_id(user_id))
            if cart is None:
                return True  # brak koszyka = wyczyszczony

            self.empty(cart)
        return True

    def apply_promo_code(self, user_id: int | None, code: str) -> Dict[str, Any]:
        with unit_of_work(self.db):
            cart = self.get_or_create(user_id)
            # rzuca konkretny PromoInvalid, koszyk bez zmian
            promo = self.promos.validate(code)

            cart.applied_promo_code_id = promo.id
            cart.promo_code_discount_percentage = promo.discount_percentage
            self.db.flush()
            self._bump_version(cart)

        logger.info(f"Kod {promo.code} zastosowany w koszyku {cart.id}")
        return self._to_view(cart)

    def remove_promo_code(self, user_id: int | None) -> Dict[str, Any]:
        with unit_of_work(self.db):
            cart = self.get_or_create(user_id)
            cart.applied_promo_code_id = None
            cart.promo_code_discount_percentage = None
            self.db.flush()
            self._bump_version(cart)

        return self._to_view(cart)

    def empty(self, cart: CartModel, drop_promo: bool = False) -> int:
        """Usuwa wszystkie pozycje (wiersz koszyka zostaje)."""
        with unit_of_work(self.db):
            removed = self.repo.delete_cart_items(cart)
            if drop_promo:
                cart.applied_promo_code_id = None
                cart.promo_code_discount_percentage = None
                self.db.flush()
            self._bump_version(cart)

        logger.info(f"Koszyk {cart.id} wyczyszczony ({removed} pozycji)")
        return removed

    def whatsapp_order(
        self, user_id: int | None, phone_number: str, customer_name: str, customer_phone: str
    ) -> Dict[str, str]:
        """Link wa.me z zawartoscia koszyka. Koszyk zostaje bez zmian."""
        view = self.get_cart(user_id)
        if not view["items"]:
            raise CartEmpty()

        logger.info(f"Link WhatsApp dla koszyka {view['cart_id']} ({len(view['items'])} pozycji)")
        return self.whatsapp.order_link(
            phone_number, customer_name, customer_phone, view["items"], view["final_amount"]
        )

    def quick_whatsapp_order(
        self,
        product_id: int,
        quantity: int,
        phone_number: str,
        customer_name: str,
        customer_phone: str,
    ) -> Dict[str, str]:
        # jeden produkt z pominieciem koszyka
        product, unit_price = self._priced_product(product_id, quantity)
        total = money(money(unit_price) * quantity)
        item = {
            "product_name": product["name"],
            "quantity": quantity,
            "unit_price": unit_price,
            "total_price": total,
        }
        return self.whatsapp.order_link(phone_number, customer_name, customer_phone, [item], total)

    #helpers
    def _priced_product(self, product_id: int, quantity: int):
        # Walidacje
        if quantity <= 0:
            raise ValidationError("Ilosc musi byc wieksza niz 0")

        logger.info(f"Pobieranie danych produktu {product_id} z product-service")
        product = self.product_client.fetch_product(product_id)

        if product is None or not product["is_active"]:
            raise ProductNotFound("Produkt nie istnieje lub jest nieaktywny")

        if product["stock_quantity"] < quantity:
            raise InsufficientStock(available=product["stock_quantity"])

        # cena po przecenie jesli jest, inaczej regularna
        unit_price = product["discounted_price"] if product["discounted_price"] is not None else product["price"]
        if unit_price <= 0:
            raise ValidationError("Nieprawidlowa cena produktu")
        return product, unit_price

    def _owner_id(self, user_id: int | None) -> int:
        return ANONYMOUS_USER_ID if user_id is None else user_id

    def _require_item(self, cart: CartModel, item_id: int) -> CartItemModel:
        item = self.repo.get_cart_item_by_id(cart.id, item_id)
        if item is None:
            raise CartItemNotFound("Pozycja koszyka nie istnieje")
        return item

    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking
        # np w bazie update set version 2 where id 1 and version 1
        old_version = cart.version
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data={
                "version": old_version + 1,
                "updated_at": utcnow(),
            },
        )

        if rowcount == 0:
            raise ConcurrencyConflict(
                "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
            )

    def _empty_view(self) -> Dict[str, Any]:
        return {
            "cart_id": None,
            "user_id": None,
            "items": [],
            "sub_total": ZERO,
            "total_price_before_discount": ZERO,
            "total_discount": ZERO,
            "total_quantity": 0,
            "applied_promo_code": None,
            "promo_code_discount_percentage": None,
            "promo_code_discount_amount": ZERO,
            "final_amount": ZERO,
            "created_at": None,
            "updated_at": None,
        }

    def _to_view(self, cart: CartModel) -> Dict[str, Any]:
        lines: List[Dict[str, Any]] = []
        sub_total = ZERO
        before_discount = ZERO
        total_discount = ZERO

        for item in self.repo.get_cart_items(cart.id):
            product = self.product_client.fetch_product(item.product_id)
            if product is None:
                # produkt usuniety z katalogu - pomijamy w widoku
                logger.warning(f"Produkt {item.product_id} z koszyka {cart.id} nie istnieje w katalogu")
                continue

            unit_price = money(item.unit_price)
            line_total = item.total_price
            original_total = product["price"] * item.quantity
            line_discount = (product["price"] - unit_price) * item.quantity

            sub_total += line_total
            before_discount += original_total
            total_discount += line_discount

            lines.append(
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "product_name": product["name"],
                    "product_sku": product["sku"],
                    "quantity": item.quantity,
                    "unit_price": unit_price,
                    "original_price": money(product["price"]),
                    "total_price": money(line_total),
                    "discount": money(line_discount),
                }
            )

        promo_code = None
        percentage = None
        promo_amount = ZERO
        if cart.applied_promo_code_id is not None:
            promo = self.promos.repo.get_by_id(cart.applied_promo_code_id)
            if promo is not None:
                promo_code = promo.code
                percentage = Decimal(cart.promo_code_discount_percentage)
                promo_amount = percent_of(sub_total, percentage)

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": lines,
            "sub_total": money(sub_total),
            "total_price_before_discount": money(before_discount),
            "total_discount": money(total_discount),
            "total_quantity": sum(line["quantity"] for line in lines),
            "applied_promo_code": promo_code,
            "promo_code_discount_percentage": percentage,
            "promo_code_discount_amount": promo_amount,
            "final_amount": money(sub_total - promo_amount),
            "created_at": cart.created_at,
            "updated_at": cart.updated_at,
        }
