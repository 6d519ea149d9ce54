from .client import BrandscopeClient as BrandscopeClient
from .exceptions import ApiError as ApiError
from .exceptions import BatchFailedError as BatchFailedError
from .exceptions import BatchStartError as BatchStartError
from .exceptions import BatchTimeoutError as BatchTimeoutError
from .exceptions import BrandscopeError as BrandscopeError
from .exceptions import MissingResultError as MissingResultError
from .exceptions import NotFoundError as NotFoundError
from .exceptions import ResultParseError as ResultParseError
from .results import BatchProcessResults as BatchProcessResults
from .results import parse_batch_results as parse_batch_results
from .results import parse_pipeline_result as parse_pipeline_result
from .runner import BatchRun as BatchRun
from .runner import BatchRunner as BatchRunner
from .settings import Settings as Settings
from .settings import load_settings as load_settings
from .status import BatchStatus as BatchStatus
from .status import ResultType as ResultType

__all__ = [
    "BrandscopeClient",
    "BatchRunner",
    "BatchRun",
    "Settings",
    "load_settings",
    "BatchStatus",
    "ResultType",
    "BatchProcessResults",
    "parse_batch_results",
    "parse_pipeline_result",
    "BrandscopeError",
    "ApiError",
    "NotFoundError",
    "BatchStartError",
    "BatchFailedError",
    "BatchTimeoutError",
    "MissingResultError",
    "ResultParseError",
]
