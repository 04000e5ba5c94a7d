# checkout/domain/enums.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class TransactionType(str, Enum):
    CREDIT = "CREDIT"  # naliczony bonus
    DEBIT = "DEBIT"  # bonus wykorzystany przy zamowieniu
