"""Validators for individual request fields.

None of these raise on bad input: each returns a ValidationResult whose
``errors`` the request handlers merge and report together.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from models.category import GLOBAL_OWNER
from models.money import MAX_AMOUNT, quantize
from models.wallet import NO_PARENT
from validation.results import FieldError, ValidationResult

_DATE_FORMAT = re.compile(r"([0-9]{4})-(0[1-9]|1[0-2])-(0[1-9]|[1-2]\d|3[0-1])")

_THIRTY_DAY_MONTHS = {4, 6, 9, 11}


def is_leap_year(year: int) -> bool:
    return year % 400 == 0 or (year % 4 == 0 and year % 100 != 0)


def validate_amount(raw) -> ValidationResult:
    """Parse an amount and round it to two decimal places.

    The rounded value is always returned, ``Decimal("NaN")`` when the input
    is not a number.
    """
    result = ValidationResult(value=Decimal("NaN"))

    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        amount = None

    if raw is None or isinstance(raw, bool) or amount is None or not amount.is_finite():
        result.add("amount", FieldError.AMOUNT_NOT_NUMBER)
        return result

    try:
        rounded = quantize(amount)
    except InvalidOperation:
        rounded = None

    if rounded is None or abs(rounded) > MAX_AMOUNT:
        result.add("amount", FieldError.AMOUNT_NOT_NUMBER)
        return result

    result.value = rounded
    return result


def validate_date(raw) -> ValidationResult:
    """Check a ``YYYY-MM-DD`` date string is a real calendar date.

    On success ``value`` holds the parsed ``date``.
    """
    result = ValidationResult()

    match = _DATE_FORMAT.fullmatch(raw) if isinstance(raw, str) else None
    if match is None:
        result.add("date", FieldError.INVALID_DATE_FORMAT)
        return result

    year, month, day = (int(part) for part in match.groups())

    # The pattern already rejects days above 31 and months above 12
    if month == 2:
        if day > 29 or (day == 29 and not is_leap_year(year)):
            result.add("date", FieldError.INVALID_DATE)
    elif month in _THIRTY_DAY_MONTHS and day == 31:
        result.add("date", FieldError.INVALID_DATE)

    if result.valid:
        result.value = date(year, month, day)
    return result


def validate_concept(raw) -> ValidationResult:
    result = ValidationResult()
    if raw is None or not str(raw).strip():
        result.add("concept", FieldError.EMPTY_CONCEPT)
    else:
        result.value = str(raw).strip()
    return result


def validate_currency(wallets, raw, parent_id: str = NO_PARENT) -> ValidationResult:
    """Check a currency code and, for subwallets, that it matches the parent.

    Args:
        wallets: WalletService used to look up the parent.
        raw: Currency as received.
        parent_id: Parent wallet ID, or "-1" for a top-level wallet.

    Returns:
        Result whose ``value`` is the trimmed, upper-cased code.
    """
    output = "" if raw is None else str(raw).strip().upper()
    result = ValidationResult(value=output)

    if not output:
        result.add("currency", FieldError.EMPTY_CURRENCY)
        return result
    if len(output) != 3:
        result.add("currency", FieldError.BAD_CURRENCY_LENGTH)
        return result

    if parent_id and parent_id != NO_PARENT:
        parent = wallets.find(parent_id)
        if parent is not None and parent.currency != output:
            result.add("currency", FieldError.CURRENCY_MISMATCH)

    return result


def validate_wallet_name(wallets, raw, user_id: str) -> ValidationResult:
    """Check a wallet name is not empty and not already used by this user.

    The duplicate lookup always runs, including for empty names.
    """
    name = "" if raw is None else str(raw).strip()
    result = ValidationResult(value=name)

    if not name:
        result.add("name", FieldError.EMPTY_NAME)

    if wallets.find_by_name(user_id, name) is not None:
        result.add("name", FieldError.DUPLICATE_NAME)

    return result


def validate_category(categories, category_id, user_id: str) -> ValidationResult:
    """Check a category exists and is global or owned by the user.

    On success ``value`` holds the Category.
    """
    result = ValidationResult()

    category = categories.find(category_id) if category_id else None
    if category is None:
        result.add("category", FieldError.CATEGORY_NOT_FOUND)
    elif category.user_id not in (GLOBAL_OWNER, user_id):
        result.add("category", FieldError.CATEGORY_NOT_OWNED)
    else:
        result.value = category

    return result


def set_icon_id(raw) -> int:
    """Coerce an icon id to a non-negative integer, 0 when it can't be."""
    try:
        icon_id = int(raw)
    except (TypeError, ValueError):
        try:
            icon_id = int(float(raw))
        except (TypeError, ValueError, OverflowError):
            return 0
    except OverflowError:
        return 0

    return icon_id if icon_id >= 0 else 0
