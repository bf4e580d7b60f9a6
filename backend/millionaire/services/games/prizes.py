# PRIZES[level] is paid for answering the question of that level
PRIZES = [
    100, 200, 300, 500, 1_000,
    2_000, 4_000, 8_000, 16_000, 32_000,
    64_000, 125_000, 250_000, 500_000, 1_000_000,
]

# Prizes at these levels are kept even after a wrong answer
FIREPROOF_LEVELS = [4, 9, 14]


def fireproof_prize(answered_level: int) -> int:
    """Prize kept by a player who failed after answering `answered_level`."""
    reached = [lvl for lvl in FIREPROOF_LEVELS if lvl <= answered_level]
    return PRIZES[reached[-1]] if reached else 0


def money_prize(answered_level: int) -> int:
    """Prize taken by a player who walks away after answering `answered_level`."""
    if answered_level < 0:
        return 0
    return PRIZES[min(answered_level, len(PRIZES) - 1)]


def format_prize(amount) -> str:
    return f"${int(amount or 0):,}"
