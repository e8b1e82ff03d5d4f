"""ReadinessEngine package exports."""

from .cli import *  # noqa: F401,F403
from .cli import __all__ as _cli_all
from .lifecycle import *  # noqa: F401,F403
from .lifecycle import __all__ as _lifecycle_all
from .recovery import *  # noqa: F401,F403
from .recovery import __all__ as _recovery_all
from .scoring import *  # noqa: F401,F403
from .scoring import __all__ as _scoring_all

__all__ = [
    *_cli_all,
    *_lifecycle_all,
    *_recovery_all,
    *_scoring_all,
]
