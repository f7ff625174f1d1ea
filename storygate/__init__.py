"""
Storygate

Quality gateway and budget-aware strategy selection for long-form
generated fiction.
"""

from storygate.core.config import StorygateConfig, load_config
from storygate.core.constants import VERSION
from storygate.core.exceptions import BudgetExhausted, BudgetExhaustedError, StorygateError
from storygate.session import StorygateSession

__version__ = VERSION

__all__ = [
    "StorygateConfig",
    "StorygateSession",
    "StorygateError",
    "BudgetExhausted",
    "BudgetExhaustedError",
    "load_config",
    "__version__",
]
