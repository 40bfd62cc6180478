from src.core.config import mask_key


class TradeAppraiserError(Exception):
    pass


class FetchError(TradeAppraiserError):
    """
    The remote API could not be reached or returned something unusable.
    Fatal to the current ingestion run.
    """


class AmbiguousResponse(TradeAppraiserError):
    """
    The trade history API kept answering without a definite `more` flag.
    Only raised once a configured backoff retry cap is exhausted.
    """


class AlreadyRunning(TradeAppraiserError):
    def __init__(self, key: str):
        super().__init__(f"already refreshing trades for {mask_key(key)}")
        self.key = key
