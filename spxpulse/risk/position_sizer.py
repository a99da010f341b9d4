"""
Option Budget Calculator

Display-level sizing for a planned option trade: how many contracts a
dollar budget buys at the estimated premium, and what the position pays at
each profit target or loses at the stop.

Invalid budgets (negative, NaN, missing) degrade to zero contracts rather
than raising; sizing is never part of the alerting logic.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from spxpulse.shared.config.defaults import PlannerConfig, DEFAULT_PLANNER
from spxpulse.shared.models.planner import TradeSignal
from spxpulse.shared.utils.error_policy import sanitize_number


@dataclass(frozen=True)
class PayoutSimulation:
    """
    Payout of a budget-sized position.

    Attributes:
        contracts: Whole contracts affordable
        total_cost: contracts x premium x multiplier
        profit_at_targets: Profit at profit_target1..3
        loss_at_stop: Loss (positive number) if the stop premium is hit
    """
    contracts: int
    total_cost: float
    profit_at_targets: Tuple[float, float, float]
    loss_at_stop: float

    def __post_init__(self):
        if self.contracts < 0:
            raise ValueError(f"Contracts must be >= 0, got {self.contracts}")

    def to_dict(self) -> dict:
        return {
            'contracts': self.contracts,
            'total_cost': self.total_cost,
            'profit_at_targets': list(self.profit_at_targets),
            'loss_at_stop': self.loss_at_stop,
        }


def contracts_for_budget(budget: float, premium: float, config: PlannerConfig = DEFAULT_PLANNER) -> int:
    """floor(budget / (premium x 100)); 0 for unusable inputs."""
    budget = sanitize_number(budget, 0.0)
    premium = sanitize_number(premium, 0.0)
    if budget <= 0 or premium <= 0:
        return 0
    return int(math.floor(budget / (premium * config.contract_multiplier)))


def simulate_payout(
    signal: TradeSignal,
    budget: float,
    config: PlannerConfig = DEFAULT_PLANNER,
) -> PayoutSimulation:
    """Size the signal to the budget and price the target/stop outcomes."""
    contracts = contracts_for_budget(budget, signal.estimated_premium, config)
    unit = contracts * config.contract_multiplier
    cost = unit * signal.estimated_premium
    profits = tuple((target - signal.estimated_premium) * unit for target in signal.profit_targets)
    loss = (signal.estimated_premium - signal.stop_loss) * unit
    return PayoutSimulation(
        contracts=contracts,
        total_cost=cost,
        profit_at_targets=profits,
        loss_at_stop=loss,
    )
