"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Wallet
  3xxx: Property
  4xxx: Listing / Trade
  5xxx: Holding / Token lock
  9xxx: System
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} USDT, available {available} USDT",
            400,
        )


class WalletNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Wallet not found for user {user_id}", 404)


# --- 3xxx: Property ---

class PropertyNotFoundError(AppError):
    def __init__(self, property_id: str) -> None:
        super().__init__(3001, f"Property not found: {property_id}", 404)


# --- 4xxx: Listing / Trade ---

class ListingNotFoundError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(4001, f"Listing not found: {listing_id}", 404)


class ListingNotActiveError(AppError):
    def __init__(self, listing_id: str, status: str) -> None:
        super().__init__(4002, f"Listing {listing_id} is not active (status: {status})", 400)


class SelfTradeError(AppError):
    def __init__(self) -> None:
        super().__init__(4003, "Cannot buy your own listing", 403)


class InsufficientSupplyError(AppError):
    def __init__(self, requested: Decimal, remaining: Decimal) -> None:
        super().__init__(
            4004,
            f"Insufficient supply: requested {requested} tokens, {remaining} remaining",
            400,
        )


class OrderSizeViolationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4005, f"Order size violation: {detail}", 400)


class ListingForbiddenError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(4006, f"You can only cancel your own listings: {listing_id}", 403)


class ListingBusyError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(4007, f"Listing {listing_id} is busy, please retry", 409)


class TradeNotFoundError(AppError):
    def __init__(self, trade_id: str) -> None:
        super().__init__(4008, f"Trade not found: {trade_id}", 404)


# --- 5xxx: Holding / Token lock ---

class InsufficientTokensError(AppError):
    def __init__(self, requested: Decimal, available: Decimal) -> None:
        super().__init__(
            5001,
            f"Insufficient tokens: requested {requested}, available {available}",
            400,
        )


class TokenLockShortfallError(AppError):
    def __init__(self, requested: Decimal, covered: Decimal) -> None:
        super().__init__(
            5002,
            f"Failed to lock all requested tokens: requested {requested}, covered {covered}",
            400,
        )


class HoldingNotFoundError(AppError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(5003, f"Holding not found: {holding_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
