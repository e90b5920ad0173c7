from .base import BaseNewsProvider, RawArticle
from .manager import ProviderRegistry, provider_registry, register_provider, build_providers
from .finnhub import FinnhubProvider
from .newsapi import NewsApiProvider
from .sec_edgar import SecEdgarProvider
from .alpha_vantage import AlphaVantageProvider

__all__ = [
    "BaseNewsProvider", "RawArticle",
    "ProviderRegistry", "provider_registry", "register_provider", "build_providers",
    "FinnhubProvider", "NewsApiProvider", "SecEdgarProvider", "AlphaVantageProvider",
]
