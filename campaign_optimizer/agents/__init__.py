"""Pipeline stages: budget guard, actuator, accountant and the LangGraph brain."""

from campaign_optimizer.agents.budget_guard import BudgetGuard, ExecutionBudget
from campaign_optimizer.agents.batch_actuator import BatchActuator
from campaign_optimizer.agents.run_accountant import RunAccountant
from campaign_optimizer.agents.optimizer_brain import OptimizerBrain, OptimizerState

__all__ = [
    "BudgetGuard",
    "ExecutionBudget",
    "BatchActuator",
    "RunAccountant",
    "OptimizerBrain",
    "OptimizerState",
]
