# app/services/payment_gateway.py
import random
import re
import time
from dataclasses import dataclass
from typing import Callable

from app.domain.enums import PaymentMethod
from app.domain.errors import InvalidCard
from app.utils.logging import get_logger
from app.utils.settings import PAYMENT_MAX_DELAY_MS, PAYMENT_MIN_DELAY_MS

logger = get_logger(__name__)

# karty testowe
APPROVED_CARDS = frozenset({"4242424242424242", "5555555555554444"})
DECLINED_CARDS = frozenset({"4000000000000002"})

_CARD_DIGITS = re.compile(r"^\d{13,19}$")


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    transaction_id: str
    message: str


def luhn_valid(card_number: str) -> bool:
    cleaned = re.sub(r"\s", "", card_number)
    if not _CARD_DIGITS.match(cleaned):
        return False

    total = 0
    for i, ch in enumerate(reversed(cleaned)):
        digit = int(ch)
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def format_amount(amount: int) -> str:
    # 20000 -> $20.000
    return "$" + f"{amount:,}".replace(",", ".")


class PaymentGateway:
    """
    Symulator bramki płatności.
    W produkcji tu byłaby integracja z prawdziwym operatorem (Stripe itp.).
    Bez stanu - każde wywołanie jest niezależne.
    """

    def __init__(
        self,
        min_delay_ms: int = PAYMENT_MIN_DELAY_MS,
        max_delay_ms: int = PAYMENT_MAX_DELAY_MS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max(max_delay_ms, min_delay_ms)
        self._sleep = sleep

    def process(self, amount: int, payment) -> PaymentResult:
        """
        payment - jeden z wariantów unii PaymentIn (card / cash / transfer).
        Odmowa banku to PaymentResult(success=False), a zły numer karty to InvalidCard.
        """
        self._simulate_network_delay()

        method = PaymentMethod(payment.payment_method)
        if method == PaymentMethod.CARD:
            return self._process_card(amount, getattr(payment, "card_number", None))
        if method == PaymentMethod.CASH:
            return PaymentResult(
                success=True,
                transaction_id=self._transaction_id(),
                message=f"Zamówienie potwierdzone. Płatność gotówką {format_amount(amount)} przy odbiorze",
            )
        return PaymentResult(
            success=True,
            transaction_id=self._transaction_id(),
            message=f"Zamówienie potwierdzone. Przelew {format_amount(amount)} oczekuje na weryfikację",
        )

    def _process_card(self, amount: int, card_number: str | None) -> PaymentResult:
        if not card_number:
            raise InvalidCard("Numer karty jest wymagany")

        cleaned = re.sub(r"\s", "", card_number)

        if cleaned in DECLINED_CARDS:
            logger.info(f"Card ending {cleaned[-4:]} declined")
            return PaymentResult(
                success=False,
                transaction_id="",
                message="Karta odrzucona przez bank",
            )

        if cleaned not in APPROVED_CARDS and not luhn_valid(cleaned):
            raise InvalidCard("Nieprawidłowy numer karty")

        return PaymentResult(
            success=True,
            transaction_id=self._transaction_id(),
            message=f"Płatność {format_amount(amount)} zaakceptowana",
        )

    @staticmethod
    def _transaction_id() -> str:
        return f"TXN-{int(time.time() * 1000)}-{random.randint(0, 999998)}"

    def _simulate_network_delay(self):
        if self.max_delay_ms <= 0:
            return
        delay_ms = random.randint(self.min_delay_ms, self.max_delay_ms)
        self._sleep(delay_ms / 1000)
