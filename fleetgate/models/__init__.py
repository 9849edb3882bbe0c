from fleetgate.models.admin import Admin
from fleetgate.models.admin_log import AdminLog
from fleetgate.models.customer import Customer
from fleetgate.models.device_command import DeviceCommand
from fleetgate.models.device_token import DeviceToken
from fleetgate.models.error_report import ErrorReport
from fleetgate.models.pickup_code import PickupCode
from fleetgate.models.rate_limit import RateLimitCounter

__all__ = [
    "Admin",
    "AdminLog",
    "Customer",
    "PickupCode",
    "DeviceCommand",
    "DeviceToken",
    "ErrorReport",
    "RateLimitCounter",
]
