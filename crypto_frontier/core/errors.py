"""Exception types raised by the crypto_frontier core."""


class CryptoFrontierError(Exception):
    """Base class for all package errors."""


class DataError(CryptoFrontierError, ValueError):
    """
    Price data could not be turned into valid statistics.

    Raised for missing or unreadable price files, malformed rows, too few
    periods, a wrong asset count, and non-positive or non-finite prices.
    """


class DegenerateVarianceError(CryptoFrontierError, ArithmeticError):
    """Portfolio variance is not positive, so the fitness ratio is undefined."""


class DegenerateWeightsError(CryptoFrontierError, ArithmeticError):
    """A weight vector sums to zero and cannot be renormalized."""
