from gostly.models.billing_profile import BillingProfile
from gostly.models.handoff import Handoff
from gostly.models.message_log import MessageLog
from gostly.models.property import Property
from gostly.models.usage_monthly import UsageMonthly

__all__ = [
    "Property",
    "BillingProfile",
    "UsageMonthly",
    "MessageLog",
    "Handoff",
]
