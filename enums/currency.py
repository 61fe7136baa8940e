from enum import Enum


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"

    def to_gateway_code(self) -> str:
        return self.value.lower()
