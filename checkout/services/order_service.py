# checkout/services/order_service.py
import random
import uuid
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from checkout.data.database import unit_of_work
from checkout.data.models.order import OrderModel
from checkout.data.models.order_item import OrderItemModel
from checkout.domain.enums import OrderStatus
from checkout.domain.errors import (
    AlreadyProcessed,
    CartEmpty,
    CartNotFound,
    CheckoutInProgress,
    OrderNotFound,
    PersistenceError,
    PromoUnknown,
    ValidationError,
    WalletAmountExceedsTotal,
)
from checkout.domain.schemas import OrderCreate
from checkout.repos.cart_repo import CartRepo
from checkout.repos.order_repo import OrderRepo
from checkout.services.cart_service import CartService
from checkout.services.lock_service import LockService
from checkout.services.notification_service import NotificationService
from checkout.services.product_client import ProductClient
from checkout.services.promo_code_service import PromoCodeService
from checkout.services.user_service import UserService
from checkout.services.wallet_service import WalletService
from checkout.utils.money import ZERO, as_utc, money, percent_of, utcnow
from checkout.utils.pagination import page_dict
from checkout.utils.settings import (
    BonusSettings,
    CHECKOUT_LOCK_TTL_SECONDS,
    ORDER_NUMBER_ATTEMPTS,
    get_bonus_settings,
)
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "delivery_address": order.delivery_address,
        "latitude": order.latitude,
        "longitude": order.longitude,
        "delivery_notes": order.delivery_notes,
        "items": [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "product_sku": i.product_sku,
                "quantity": i.quantity,
                "unit_price": money(i.unit_price),
                "total_price": money(i.total_price),
            }
            for i in order.items
        ],
        "sub_total": money(order.sub_total),
        "promo_code_discount": money(order.promo_code_discount) if order.promo_code_discount is not None else None,
        "wallet_discount": money(order.wallet_discount) if order.wallet_discount is not None else None,
        "total_amount": money(order.total_amount),
        "status": order.status,
        "bonus_awarded": order.bonus_awarded,
        "bonus_amount": money(order.bonus_amount) if order.bonus_amount is not None else None,
        "created_at": as_utc(order.created_at),
        "updated_at": as_utc(order.updated_at),
        "confirmed_at": as_utc(order.confirmed_at),
        "delivered_at": as_utc(order.delivered_at),
        "cancelled_at": as_utc(order.cancelled_at),
    }


def order_to_list_item(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "total_amount": money(order.total_amount),
        "status": order.status,
        "items_count": len(order.items),
        "created_at": as_utc(order.created_at),
    }


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Koszyk -> zamowienie (promo, potem portfel) w jednej transakcji,
    potem cykl statusow i bonus za dostarczone zamowienie.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
        bonus_settings: BonusSettings | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.carts = CartService(db, product_client)
        self.promos = PromoCodeService(db)
        self.wallets = WalletService(db)
        self.users = UserService(db)
        self.product_client = product_client
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()
        self.bonus_settings = bonus_settings or get_bonus_settings()

    #commands
    def create_order_from_cart(self, user_id: int, payload: OrderCreate) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamowienia z koszyka.

        1. Pobiera koszyk (musi istniec i nie byc pusty)
        2. Snapshot pozycji (usuniete produkty sa pomijane)
        3. Rabat z kodu promocyjnego (ponowna walidacja kodu)
        4. Rabat z portfela (nie wiecej niz suma po promocji)
        5. Zapis zamowienia, czyszczenie koszyka
        Wszystko albo nic - jedna transakcja.
        """
        token = uuid.uuid4().hex
        locked = self.lock_service.acquire_checkout_lock(
            user_id=user_id,
            token=token,
            ttl=CHECKOUT_LOCK_TTL_SECONDS,
        )
        if not locked:
            raise CheckoutInProgress("Zamowienie dla tego koszyka jest juz w trakcie realizacji")

        try:
            order = self._checkout(user_id, payload)
        finally:
            self._release_lock(user_id, token)

        logger.info(f"Order {order.order_number} ({order.id}) created for user {user_id}, total {order.total_amount}")
        self._notify(self.notification_service.send_order_notification, user_id, order.id, order.order_number)
        return order_to_dict(order)

    def _checkout(self, user_id: int, payload: OrderCreate) -> OrderModel:
        with unit_of_work(self.db):
            self.users.require_user(user_id)

            cart = self.cart_repo.get_cart_by_user(user_id)
            if cart is None:
                raise CartNotFound("Koszyk nie istnieje")

            cart_items = self.cart_repo.get_cart_items(cart.id)
            if not cart_items:
                raise CartEmpty()

            # snapshot pozycji
            order_items: List[OrderItemModel] = []
            sub_total = ZERO
            for cart_item in cart_items:
                product = self.product_client.fetch_product(cart_item.product_id)
                if product is None:
                    logger.warning(f"Pomijam produkt {cart_item.product_id} - usuniety z katalogu")
                    continue

                unit_price = money(cart_item.unit_price)
                line_total = cart_item.total_price
                order_items.append(
                    OrderItemModel(
                        product_id=cart_item.product_id,
                        product_name=product["name"],
                        product_sku=product["sku"],
                        quantity=cart_item.quantity,
                        unit_price=unit_price,
                        total_price=line_total,
                    )
                )
                sub_total += line_total

            if not order_items:
                raise CartEmpty()

            # promo - stan mogl sie zmienic od zastosowania w koszyku
            promo = None
            promo_discount = ZERO
            if cart.applied_promo_code_id is not None and cart.promo_code_discount_percentage is not None:
                promo = self.promos.repo.get_by_id(cart.applied_promo_code_id)
                if promo is None:
                    raise PromoUnknown(str(cart.applied_promo_code_id))
                self.promos.ensure_usable(promo)
                promo_discount = percent_of(sub_total, Decimal(cart.promo_code_discount_percentage))

            total_amount = sub_total - promo_discount

            # portfel
            wallet_amount = payload.use_wallet_amount
            wallet_discount = None
            if wallet_amount is not None and wallet_amount > 0:
                wallet_amount = money(wallet_amount)
                if wallet_amount > total_amount:
                    raise WalletAmountExceedsTotal(requested=wallet_amount, total=total_amount)
                wallet_discount = wallet_amount
                total_amount -= wallet_amount

            order = self.repo.create_order(
                OrderModel(
                    order_number=self._generate_order_number(),
                    user_id=user_id,
                    customer_name=payload.customer_name,
                    customer_phone=payload.customer_phone,
                    delivery_address=payload.delivery_address,
                    latitude=payload.latitude,
                    longitude=payload.longitude,
                    delivery_notes=payload.delivery_notes,
                    sub_total=sub_total,
                    promo_code_discount=promo_discount if promo is not None else None,
                    wallet_discount=wallet_discount,
                    total_amount=total_amount,
                    status=OrderStatus.PENDING.value,
                    bonus_awarded=False,
                    bonus_amount=None,
                    created_at=utcnow(),
                )
            )
            for item in order_items:
                item.order_id = order.id
                self.repo.add_order_item(item)

            if promo is not None:
                self.promos.record_usage(
                    promo,
                    user_id=user_id,
                    discount_amount=promo_discount,
                    order_total=sub_total,
                    cart_id=cart.id,
                    order_id=order.id,
                )

            if wallet_discount is not None:
                # rzuca InsufficientBalance - cala transakcja sie wycofa
                self.wallets.debit_wallet(
                    user_id,
                    wallet_discount,
                    f"Used for order #{order.order_number}",
                    order_id=order.id,
                )

            self.carts.empty(cart, drop_promo=True)
            self.db.flush()
            self.db.refresh(order)

        return order

    def update_status(self, order_id: int, new_status: OrderStatus) -> Dict[str, Any]:
        """
        Zmiana statusu. Przejscia nie sa ograniczane (np. DELIVERED -> PENDING przechodzi).
        Bonus oceniany tylko przy pierwszym przejsciu do DELIVERED, w tej samej transakcji.
        Kolejne wejscia do DELIVERED nie zmieniaja delivered_at ani bonusu.
        """
        new_status = OrderStatus(new_status)
        bonus = None

        with unit_of_work(self.db):
            order = self._require(order_id)
            old_status = OrderStatus(order.status)
            now = utcnow()

            order.status = new_status.value
            order.updated_at = now

            if new_status is OrderStatus.CONFIRMED and old_status is not OrderStatus.CONFIRMED:
                order.confirmed_at = now
            elif new_status is OrderStatus.DELIVERED and old_status is not OrderStatus.DELIVERED:
                first_delivery = order.delivered_at is None
                if first_delivery:
                    order.delivered_at = now
                self.db.flush()
                if first_delivery and not order.bonus_awarded:
                    bonus = self.award_bonus(order)
            elif new_status is OrderStatus.CANCELLED:
                # brak zwrotu srodkow z portfela i licznika kodu
                order.cancelled_at = now

            self.db.flush()

        logger.info(f"Order {order.order_number}: {old_status.value} -> {new_status.value}")
        if bonus is not None:
            self._notify(self.notification_service.send_bonus_notification, order.user_id, order.order_number, str(bonus))
        return order_to_dict(order)

    def award_bonus(self, order: OrderModel) -> Decimal | None:
        """
        Bonus = total * procent, jesli total >= minimum.
        Ponizej progu - brak bonusu, nigdy nie ponawiany.
        """
        with unit_of_work(self.db):
            self.db.flush()
            if order.bonus_awarded:
                raise AlreadyProcessed(f"Bonus za zamowienie #{order.order_number} zostal juz przyznany")

            total = money(order.total_amount)
            if total < self.bonus_settings.minimum_order:
                logger.info(f"Order {order.order_number}: total {total} below bonus threshold")
                return None

            bonus_amount = percent_of(total, self.bonus_settings.percentage)
            if bonus_amount <= 0:
                return None

            # warunkowy update flagi w tej samej transakcji co credit
            rowcount = self.repo.mark_bonus_awarded(order.id, bonus_amount)
            if rowcount == 0:
                raise AlreadyProcessed(f"Bonus za zamowienie #{order.order_number} zostal juz przyznany")

            self.wallets.credit_bonus(
                order.user_id,
                bonus_amount,
                f"Bonus for Order #{order.order_number}",
                order_id=order.id,
            )
            self.db.refresh(order)

        logger.info(f"Bonus {bonus_amount} awarded for order {order.order_number}")
        return bonus_amount

    #query
    def get_order(self, order_id: int, user_id: int | None = None) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamowienia (Query).
        user_id = None -> odczyt administracyjny bez sprawdzania wlasciciela.
        """
        order = self._require(order_id)

        if user_id is not None and order.user_id != user_id:
            raise PermissionError("Brak dostepu do zamowienia")

        return order_to_dict(order)

    def list_user_orders(self, user_id: int) -> List[Dict[str, Any]]:
        return [order_to_list_item(o) for o in self.repo.list_by_user(user_id)]

    def list_orders(self, page: int, page_size: int, customer_name: str | None = None) -> Dict[str, Any]:
        if page < 1 or page_size < 1:
            raise ValidationError("Nieprawidlowe parametry stronicowania")
        items, total = self.repo.list_paged(page, page_size, customer_name)
        return page_dict([order_to_list_item(o) for o in items], total, page, page_size)

    #helpers
    def _require(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound("Zamowienie nie istnieje")
        return order

    def _generate_order_number(self) -> str:
        # ORD-YYYYMMDD-XXXX, przy kolizji losujemy ponownie
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            number = f"ORD-{utcnow():%Y%m%d}-{random.randint(1000, 9999)}"
            if not self.repo.order_number_exists(number):
                return number
        logger.error(f"No free order number after {ORDER_NUMBER_ATTEMPTS} attempts")
        raise PersistenceError("Nie udalo sie wygenerowac numeru zamowienia")

    def _release_lock(self, user_id: int, token: str) -> None:
        # lock i tak wygasa po TTL
        try:
            self.lock_service.release_checkout_lock(user_id, token)
        except Exception as e:
            logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")

    def _notify(self, send, *args) -> None:
        # powiadomienie po commicie - blad kolejki nie cofa zamowienia
        try:
            send(*args)
        except Exception as e:
            logger.warning(f"Failed to enqueue notification {getattr(send, '__name__', send)}: {e}")
