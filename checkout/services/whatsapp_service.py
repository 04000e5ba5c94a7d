# checkout/services/whatsapp_service.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List
from urllib.parse import quote_plus

from checkout.domain.errors import ValidationError
from checkout.utils.money import money, utcnow
from checkout.utils.settings import ORDER_CURRENCY, WHATSAPP_COUNTRY_CODE


class WhatsAppService:
    """
    Zamowienie wysylane jako gotowa wiadomosc WhatsApp (link wa.me).
    Nic nie zapisuje - tylko formatuje tekst i buduje URL.
    """

    def __init__(self, currency: str = ORDER_CURRENCY, country_code: str = WHATSAPP_COUNTRY_CODE):
        self.currency = currency
        self.country_code = country_code

    def normalize_phone(self, phone_number: str) -> str:
        phone = phone_number
        for ch in " -()":
            phone = phone.replace(ch, "")

        if not phone.startswith("+"):
            # bez prefiksu - domyslny kraj
            if phone.startswith("0"):
                phone = f"+{self.country_code}{phone[1:]}"
            elif not phone.startswith(self.country_code):
                phone = f"+{self.country_code}{phone}"
            else:
                phone = f"+{phone}"

        digits = phone.lstrip("+")
        if not digits.isdigit():
            raise ValidationError("Nieprawidlowy numer telefonu")
        return digits

    def build_url(self, phone_number: str, message: str) -> str:
        return f"https://wa.me/{self.normalize_phone(phone_number)}?text={quote_plus(message)}"

    def format_order_message(
        self,
        customer_name: str,
        customer_phone: str,
        items: List[Dict[str, Any]],
        total_amount: Decimal,
        created_at: datetime | None = None,
    ) -> str:
        created_at = created_at or utcnow()
        lines = [
            "*NEW ORDER*",
            "",
            "*Customer:*",
            f"Name: {customer_name}",
            f"Phone: {customer_phone}",
            "",
            "*Items:*",
            "",
        ]
        for item in items:
            lines += [
                f"- *{item['product_name']}*",
                f"  Quantity: {item['quantity']}",
                f"  Price: {money(item['unit_price'])} {self.currency}",
                f"  Total: {money(item['total_price'])} {self.currency}",
                "",
            ]
        lines += [
            "*TOTAL:*",
            f"*{money(total_amount)} {self.currency}*",
            "",
            "---",
            f"Date: {created_at:%d.%m.%Y %H:%M}",
        ]
        return "\n".join(lines)

    def order_link(self, phone_number: str, customer_name: str, customer_phone: str,
                   items: List[Dict[str, Any]], total_amount: Decimal) -> Dict[str, str]:
        message = self.format_order_message(customer_name, customer_phone, items, total_amount)
        return {"whatsapp_url": self.build_url(phone_number, message), "message": message}
