"""Kelly criterion calculations for bet sizing."""


def kelly_criterion(
    win_probability: float,
    win_amount: float,
    lose_amount: float = 1.0,
) -> float:
    """
    Calculate the Kelly criterion fraction.

    Formula: f* = (bp - q) / b
    where:
        f* = fraction of bankroll to bet
        b = odds received on the bet (win amount / lose amount)
        p = probability of winning
        q = probability of losing (1 - p)

    Args:
        win_probability: Probability of winning (0-1)
        win_amount: Amount won per unit bet
        lose_amount: Amount lost per unit bet (default 1)

    Returns:
        Optimal fraction of bankroll to bet
    """
    if win_probability <= 0 or win_probability >= 1:
        return 0.0

    p = win_probability
    q = 1 - p
    b = win_amount / lose_amount

    kelly = (b * p - q) / b

    return max(0.0, kelly)  # Never bet negative


def win_probability_from_advantage(advantage: float) -> float:
    """Approximate even-money win probability from an advantage in percent."""
    return 0.5 + advantage / 100


def fractional_kelly_bet(
    bankroll: float,
    advantage: float,
    fraction: float = 0.25,
) -> float:
    """
    Bet size from a fraction of the Kelly criterion at even money.

    Args:
        bankroll: Current bankroll
        advantage: Player advantage in percent (1.0 = 1%)
        fraction: Fraction of full Kelly to bet (quarter Kelly by default)

    Returns:
        Bet amount, 0 when the player has no advantage
    """
    if advantage <= 0:
        return 0.0
    full = kelly_criterion(win_probability_from_advantage(advantage), win_amount=1.0)
    return bankroll * full * fraction
