"""
Currency Block - Exchange rate from ExchangeRate-API
"""
from typing import Any, Optional

from .rest_poller import CachedRestPoller, RestRequest
from ..ui.theme import Theme


EXCHANGE_RATE_URL = 'https://v6.exchangerate-api.com/v6/{api_key}/pair/{base}/{quote}'


class CurrencyBlock(CachedRestPoller):
    """
    Conversion rate between two currencies.
    Enabled only when an API key is configured.
    """

    name = 'currency'

    def __init__(self, *args, api_key: str = '', base: str = 'USD', quote: str = 'EUR', **kwargs):
        """
        Args:
            api_key: ExchangeRate-API key, empty disables the block
            base: Currency converted from
            quote: Currency converted to
            *args, **kwargs: Passed to CachedRestPoller
        """
        self._api_key = api_key
        self._base = base.upper()
        self._quote = quote.upper()
        super().__init__(*args, **kwargs)

    def build_request(self) -> Optional[RestRequest]:
        if not self._api_key:
            return None
        return RestRequest(
            url=EXCHANGE_RATE_URL.format(
                api_key=self._api_key,
                base=self._base,
                quote=self._quote
            )
        )

    def format_result(self, payload: Any) -> str:
        if not isinstance(payload, dict):
            raise TypeError(f"Unexpected payload type {type(payload).__name__}")
        if payload.get('result') != 'success':
            raise ValueError(f"API error: {payload.get('error-type', 'unknown')}")

        rate = float(payload['conversion_rate'])
        return (
            f"{Theme.color(Theme.CURRENCY)} {Theme.GLYPH_DOLLAR} "
            f"{self._base}/{self._quote} {rate:.2f}"
        )
