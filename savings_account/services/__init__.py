"""Service modules"""
from .factory import build_keeper
from .harvest import HarvestWorkflow
from .keeper import HarvestKeeper
from .pool import SavingsAccount

__all__ = ["HarvestKeeper", "HarvestWorkflow", "SavingsAccount", "build_keeper"]
