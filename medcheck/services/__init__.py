from medcheck.services.client_base import BaseBackendClient
from medcheck.services.drug_detail import DrugDetailService
from medcheck.services.factory import BackendClientFactory
from medcheck.services.identify import IdentifyService
from medcheck.services.verify import VerifyService

__all__ = [
    "BackendClientFactory",
    "BaseBackendClient",
    "DrugDetailService",
    "IdentifyService",
    "VerifyService",
]
