from __future__ import annotations

from typing import Any, Optional


class LotteryClientError(Exception):
    """Base class for every failure raised by this client."""


class ConfigError(LotteryClientError):
    pass


class MalformedAccountData(LotteryClientError):
    pass


class NoValidAddress(LotteryClientError):
    pass


class InvalidArgument(LotteryClientError):
    pass


class AccountNotInitialized(LotteryClientError):
    pass


class SignerUnavailable(LotteryClientError):
    pass


class SubmissionRejected(LotteryClientError):
    pass


class ConfirmationTimeout(LotteryClientError):
    pass


class RpcError(LotteryClientError):
    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data
