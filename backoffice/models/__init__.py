"""SQLModel table models — import here so metadata is populated."""

from backoffice.models.user import User  # noqa: F401
from backoffice.models.fund import Fund  # noqa: F401
from backoffice.models.limited_partner import LimitedPartner  # noqa: F401
from backoffice.models.capital_call import CapitalCall, CapitalCallResponse  # noqa: F401
from backoffice.models.company import PortfolioCompany  # noqa: F401
from backoffice.models.investment import Investment  # noqa: F401
from backoffice.models.nav import NAVCalculation, NAVHolding  # noqa: F401
from backoffice.models.update import CompanyUpdate, UpdateMetric  # noqa: F401
from backoffice.models.check_in import CheckIn  # noqa: F401
from backoffice.models.task import Task  # noqa: F401
