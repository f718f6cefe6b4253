"""Bankroll risk utilities."""


def risk_of_ruin(bankroll: float, bet_size: float, advantage: float) -> float:
    """
    Probability of losing the whole bankroll at a flat bet size.

    RoR = ((1 - a) / (1 + a)) ^ (bankroll / bet_size), with the advantage
    ``a`` given in percent and converted to a fraction.

    Args:
        bankroll: Total bankroll
        bet_size: Flat bet per hand
        advantage: Player advantage in percent

    Returns:
        Risk between 0 and 1; always 1 without a positive advantage
    """
    if advantage <= 0 or bet_size <= 0:
        return 1.0

    edge = advantage / 100
    ratio = (1 - edge) / (1 + edge)
    units = bankroll / bet_size
    return min(1.0, max(0.0, ratio**units))


def units_in_bankroll(bankroll: float, unit_size: float) -> int:
    """Number of betting units the bankroll covers."""
    if unit_size <= 0:
        return 0
    return int(bankroll // unit_size)
