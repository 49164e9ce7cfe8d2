"""
Commission math for rentals and maintenance work.

Rental commissions follow the owner contract terms: the agency earns a number
of months of rent that grows with the lease length. Leases shorter than six
months are vacation stays and earn 15% of the whole reservation instead.
"""

from typing import Optional

VACATION_RATE = 0.15
VACATION_THRESHOLD_MONTHS = 6
DEFAULT_REFERRAL_PERCENT = 20.0

# (minimum lease months, months of rent earned), checked top-down
COMMISSION_MONTH_TIERS = [
    (60, 3.0),
    (48, 2.5),
    (36, 2.0),
    (24, 1.5),
    (12, 1.0),
    (6, 0.5),
]


def round_money(amount: Optional[float]) -> float:
    return round(float(amount or 0), 2)


def calculate_commission_months(lease_months: int) -> float:
    """Months of rent earned for a lease; 0 means vacation pricing applies"""
    for minimum, months in COMMISSION_MONTH_TIERS:
        if lease_months >= minimum:
            return months
    return 0.0


def calculate_rental_commissions(
    monthly_rent: float,
    lease_months: int,
    has_referral: bool,
    referral_percent: float = DEFAULT_REFERRAL_PERCENT,
) -> dict:
    """
    Split a rental commission between seller, referral partner and agency.

    Without a referral the seller and agency split 50/50. With a referral its
    percent is taken half from the seller's share and half from the agency's.

    Raises:
        ValueError: referral_percent outside 0..100
    """
    if referral_percent < 0 or referral_percent > 100:
        raise ValueError("Referral percent must be between 0 and 100")
    if monthly_rent < 0:
        raise ValueError("Monthly rent cannot be negative")
    if lease_months < 0:
        raise ValueError("Lease duration cannot be negative")

    if lease_months < VACATION_THRESHOLD_MONTHS:
        total_amount = monthly_rent * lease_months * VACATION_RATE
        commission_months = VACATION_RATE * lease_months  # recorded for reporting only
    else:
        commission_months = calculate_commission_months(lease_months)
        total_amount = monthly_rent * commission_months

    if has_referral:
        referral_share = referral_percent
        seller_percent = 50 - referral_percent / 2
        agency_percent = 50 - referral_percent / 2
    else:
        referral_share = 0.0
        seller_percent = 50.0
        agency_percent = 50.0

    return {
        "totalCommissionMonths": round(commission_months, 4),
        "totalCommissionAmount": round_money(total_amount),
        "sellerCommissionPercent": seller_percent,
        "referralCommissionPercent": referral_share,
        "agencyCommissionPercent": agency_percent,
        "sellerCommissionAmount": round_money(total_amount * seller_percent / 100),
        "referralCommissionAmount": round_money(total_amount * referral_share / 100),
        "agencyCommissionAmount": round_money(total_amount * agency_percent / 100),
        "isVacationRental": lease_months < VACATION_THRESHOLD_MONTHS,
    }


def calculate_maintenance_charge(actual_cost: Optional[float], commission_percent: Optional[float]) -> tuple[float, float]:
    """Agency commission on a ticket's actual cost and the total charged to the owner"""
    cost = float(actual_cost or 0)
    percent = float(commission_percent or 0)
    commission = round_money(cost * percent / 100)
    return commission, round_money(cost + commission)
