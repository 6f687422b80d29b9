"""USD exchange rate lookup for the overview report"""
import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ExchangeRate:
    currency: str
    rate: float
    is_live: bool

def fetch_exchange_rate(url: str, currency: str, fallback: float,
                        timeout: float = 5.0) -> ExchangeRate:
    """Fetch the current USD rate for a currency, falling back to a fixed rate on any failure"""
    try:
        logger.info(f"Fetching current USD to {currency} exchange rate...")
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        rate = response.json().get('rates', {}).get(currency)
        if not isinstance(rate, (int, float)) or isinstance(rate, bool):
            raise ValueError(f"{currency} rate not found in response")
        rate = round(float(rate), 2)
        logger.info(f"Current exchange rate: 1 USD = {rate} {currency}")
        return ExchangeRate(currency=currency, rate=rate, is_live=True)
    except (requests.RequestException, ValueError, AttributeError) as e:
        logger.warning(f"Failed to fetch exchange rate: {e}")
        logger.info(f"Using fallback rate: 1 USD = {fallback} {currency}")
        return ExchangeRate(currency=currency, rate=fallback, is_live=False)
