"""PayRouter - stablecoin payment routing and monetization core."""

from payrouter.service import PaymentRouter, get_default_router

__version__ = "0.1.0"
__all__ = ["PaymentRouter", "get_default_router", "__version__"]
