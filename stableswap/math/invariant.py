"""StableSwap invariant math.

Core math functions for the StableSwap (Curve-style) invariant:

    A * n^n * sum(x_i) + D = A * D * n^n + D^(n+1) / (n^n * prod(x_i))

Neither D nor a single balance has a closed form for n > 2, so both are
found with Newton's method on 18-decimal normalized integers.

IMPORTANT: All calculations use SafeInt so an underflow or a division by
zero surfaces as an error instead of a silently wrong balance.
"""

from stableswap.constants import FEE_DENOMINATOR
from stableswap.errors import (
    BalanceDidNotConverge,
    InvalidTokenIndex,
    InvariantDidNotConverge,
    ZeroBalanceError,
)
from stableswap.safe_int import S

# Maximum iterations for Newton convergence
MAX_ITERATIONS = 255


def compute_d(balances: list[int], amp: int) -> int:
    """Calculate the StableSwap invariant D using Newton's method.

    Algorithm:
        1. Initial guess: D = sum(balances)
        2. D_P = D^(n+1) / (n^n * prod(balances)), rebuilt every iteration
        3. D = (Ann*S + n*D_P) * D / ((Ann - 1)*D + (n + 1)*D_P)
        4. Stop when |D_new - D_prev| <= 1

    Args:
        balances: Normalized balances (18 decimals)
        amp: Amplification coefficient A (unscaled)

    Returns:
        The invariant D. An empty pool (all balances zero) has D = 0.

    Raises:
        ZeroBalanceError: If some but not all balances are zero
        InvariantDidNotConverge: If iteration doesn't converge
    """
    n_coins = len(balances)
    sum_balances = S(0)
    for balance in balances:
        sum_balances = sum_balances + S(balance)
    if sum_balances == 0:
        return 0

    for i, balance in enumerate(balances):
        if balance <= 0:
            raise ZeroBalanceError(f"Balance at index {i} must be positive")

    ann = S(amp) * n_coins**n_coins
    d = sum_balances

    for _ in range(MAX_ITERATIONS):
        d_p = d
        for balance in balances:
            d_p = d_p * d // (S(balance) * n_coins)

        d_prev = d
        numerator = (ann * sum_balances + d_p * n_coins) * d
        denominator = (ann - 1) * d + d_p * (n_coins + 1)
        d = numerator // denominator

        if d.abs_diff(d_prev) <= 1:
            return d.value

    raise InvariantDidNotConverge(f"Invariant did not converge after {MAX_ITERATIONS} iterations")


def compute_y(balances: list[int], token_index: int, invariant: int, amp: int) -> int:
    """Solve for balances[token_index] given D and all other balances.

    The value currently stored at token_index is ignored.

    Args:
        balances: Normalized balances (18 decimals)
        token_index: Index of the balance to solve for
        invariant: The invariant D to satisfy
        amp: Amplification coefficient A (unscaled)

    Returns:
        The balance of token_index that keeps the invariant at D

    Raises:
        InvalidTokenIndex: If token_index is out of range
        ZeroBalanceError: If another balance is zero
        BalanceDidNotConverge: If iteration doesn't converge
    """
    n_coins = len(balances)
    if token_index < 0 or token_index >= n_coins:
        raise InvalidTokenIndex(f"token_index {token_index} out of range for {n_coins} tokens")

    d = S(invariant)
    ann = S(amp) * n_coins**n_coins
    c = d
    sum_others = S(0)

    for i, balance in enumerate(balances):
        if i == token_index:
            continue
        if balance <= 0:
            raise ZeroBalanceError(f"Balance at index {i} must be positive")
        sum_others = sum_others + balance
        c = c * d // (S(balance) * n_coins)

    # c = D^(n+1) / (n^n * prod(others) * Ann)
    c = c * d // (ann * n_coins)
    b = sum_others + d // ann

    y = d
    for _ in range(MAX_ITERATIONS):
        y_prev = y
        denominator = y * 2 + b
        if denominator <= d:
            raise BalanceDidNotConverge("Denominator became non-positive")
        y = (y * y + c) // (denominator - d)

        if y.abs_diff(y_prev) <= 1:
            return y.value

    raise BalanceDidNotConverge(f"Balance did not converge after {MAX_ITERATIONS} iterations")


def dynamic_fee(xpi: int, xpj: int, fee: int, off_peg_fee_multiplier: int) -> int:
    """Scale a base fee up when the two traded balances are off peg.

    With a multiplier m (parts per FEE_DENOMINATOR), the fee is
    m * fee / ((m - 1) * 4 * xpi * xpj / (xpi + xpj)^2 + 1), which equals the
    base fee at perfect balance and approaches m * fee as the pair empties.
    Multipliers at or below FEE_DENOMINATOR disable the scaling.
    """
    if off_peg_fee_multiplier <= FEE_DENOMINATOR:
        return fee

    xps2 = (S(xpi) + xpj) * (S(xpi) + xpj)
    if xps2 == 0:
        return fee
    imbalance_term = (S(off_peg_fee_multiplier) - FEE_DENOMINATOR) * 4 * xpi * xpj // xps2
    return (S(off_peg_fee_multiplier) * fee // (imbalance_term + FEE_DENOMINATOR)).value
