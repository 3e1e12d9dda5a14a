"""
Static admission shaping for eMBB traffic.

The per-UE offered rate is a fair share of a fixed scenario budget, clamped
so no UE is starved or floods its queue. It is not derived from measured load.
"""

import logging

logger = logging.getLogger(__name__)


MIN_EMBB_RATE_BPS = 5e6    # 5 Mb/s floor
MAX_EMBB_RATE_BPS = 20e6   # 20 Mb/s ceiling
DEFAULT_EMBB_RATE_BPS = 10e6


def allocate_embb_rate(total_budget_bps: float, embb_ue_count: int) -> int:
    """
    Offered rate for each eMBB UE.

    Args:
        total_budget_bps: Aggregate eMBB budget in bit/s
        embb_ue_count: Number of eMBB UEs

    Returns:
        Per-UE rate in bit/s, truncated to an integer
    """
    if embb_ue_count == 0:
        return int(DEFAULT_EMBB_RATE_BPS)

    fair_share = total_budget_bps / float(embb_ue_count)
    rate = max(MIN_EMBB_RATE_BPS, min(fair_share, MAX_EMBB_RATE_BPS))

    if rate != fair_share:
        logger.debug(f"eMBB fair share {fair_share / 1e6:.2f} Mb/s clamped to {rate / 1e6:.2f} Mb/s")
    return int(rate)
