"""
Application services layer.

Services orchestrate business operations using repositories and domain services.
Concrete services are imported from their modules directly; this package only
re-exports the dependency-free error and result types.
"""

from services.exceptions import PlotTwistError
from services.result import Result

__all__ = [
    "PlotTwistError",
    "Result",
]
