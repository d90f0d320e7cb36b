from visacheck.quota.exceptions import QuotaExceededError
from visacheck.quota.gate import QuotaGate
from visacheck.quota.models import QuotaReservation, QuotaStatus

__all__ = ["QuotaExceededError", "QuotaGate", "QuotaReservation", "QuotaStatus"]
